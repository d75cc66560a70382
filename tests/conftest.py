"""Shared builders for policy tests."""

from __future__ import annotations

import itertools
from decimal import Decimal

import pytest

from prakan_app.models.policy import INSURANCE_BOTH, PolicyDraft
from prakan_app.repositories.blob_gateway import MemoryBlobGateway
from prakan_app.services.record_store import RecordStore


def make_draft(**overrides) -> PolicyDraft:
    values = {
        "cust_name": "สมชาย ใจดี",
        "phone": "0812345678",
        "plate": "กข-1234",
        "model": "Toyota Vios",
        "year": "2020",
        "insurance_type": INSURANCE_BOTH,
        "premium_prb": Decimal("1000"),
        "discount_prb": Decimal("100"),
        "premium_vol": Decimal("5000"),
        "discount_vol": Decimal("500"),
    }
    values.update(overrides)
    return PolicyDraft(**values)


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def fixed_clock():
    return "2024-01-15T10:00:00.000+07:00"


@pytest.fixture
def gateway() -> MemoryBlobGateway:
    return MemoryBlobGateway()


@pytest.fixture
def store(gateway) -> RecordStore:
    record_store = RecordStore(gateway, id_factory=sequential_ids(), clock=fixed_clock)
    record_store.load()
    return record_store
