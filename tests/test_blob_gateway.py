"""Tests for the SQLite-backed blob gateway."""

from __future__ import annotations

import pytest

from conftest import fixed_clock, make_draft, sequential_ids
from prakan_app.core.config import StorageConfig
from prakan_app.core.crypto import CryptoService
from prakan_app.core.errors import PersistenceError
from prakan_app.repositories.blob_gateway import SqliteBlobGateway
from prakan_app.repositories.db_pool import ThreadLocalConnection
from prakan_app.repositories.schema import initialize_schema
from prakan_app.services.record_store import RecordStore


def build_pool(tmp_path) -> ThreadLocalConnection:
    pool = ThreadLocalConnection(StorageConfig(path=str(tmp_path / "data" / "test.db")))
    initialize_schema(pool)
    return pool


def test_plain_storage_round_trip(tmp_path) -> None:
    pool = build_pool(tmp_path)
    gateway = SqliteBlobGateway(pool, "insuranceData")
    assert gateway.load() == []

    store = RecordStore(gateway, id_factory=sequential_ids(), clock=fixed_clock)
    store.create(make_draft())
    store.create(make_draft(cust_name="อีกคน"))

    row = pool.fetchone("SELECT value, encrypted FROM kv_store WHERE key = ?", ("insuranceData",))
    assert row["encrypted"] == 0
    assert "อีกคน" in row["value"]
    assert SqliteBlobGateway(pool, "insuranceData").load() == list(store.all())


def test_encrypted_storage_round_trip(tmp_path) -> None:
    pool = build_pool(tmp_path)
    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    gateway = SqliteBlobGateway(pool, "insuranceData", crypto)
    gateway.save([])

    store = RecordStore(gateway, id_factory=sequential_ids(), clock=fixed_clock)
    store.load()
    store.create(make_draft(cust_name="ความลับ"))

    row = pool.fetchone("SELECT value, encrypted FROM kv_store WHERE key = ?", ("insuranceData",))
    assert row["encrypted"] == 1
    assert "ความลับ".encode("utf-8") not in bytes(row["value"])
    assert gateway.load() == list(store.all())


def test_encrypted_storage_needs_the_right_key(tmp_path) -> None:
    pool = build_pool(tmp_path)
    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    SqliteBlobGateway(pool, "insuranceData", crypto).save([])

    with pytest.raises(PersistenceError):
        SqliteBlobGateway(pool, "insuranceData").load()

    other = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    store = RecordStore(SqliteBlobGateway(pool, "insuranceData", other))
    warnings = store.load()
    assert len(warnings) == 1
    assert len(store) == 0


def test_namespaces_are_independent(tmp_path) -> None:
    pool = build_pool(tmp_path)
    RecordStore(SqliteBlobGateway(pool, "a")).create(make_draft())

    assert SqliteBlobGateway(pool, "b").load() == []
    assert len(SqliteBlobGateway(pool, "a").load()) == 1
