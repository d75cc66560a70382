"""Key-value blob persistence for the full record collection."""

from __future__ import annotations

import json
import sqlite3
from typing import Protocol

from prakan_app.core.crypto import CryptoService
from prakan_app.core.errors import PersistenceError
from prakan_app.core.logger import get_logger
from prakan_app.models.policy import PolicyRecord
from prakan_app.repositories.db_pool import ThreadLocalConnection

logger = get_logger(__name__)


class PersistenceGateway(Protocol):
    """Opaque load/save of the whole collection."""

    def load(self) -> list[PolicyRecord]:
        """Return stored records; raise PersistenceError when unreadable."""

    def save(self, records: list[PolicyRecord]) -> None:
        """Replace the stored collection; raise PersistenceError on failure."""


def serialize_records(records: list[PolicyRecord]) -> str:
    return json.dumps([record.to_dict() for record in records], ensure_ascii=False)


def deserialize_records(payload: str) -> list[PolicyRecord]:
    """Parse a stored JSON array, dropping entries that no longer parse."""
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as error:
        raise PersistenceError(f"stored data is not valid JSON: {error}") from error
    if not isinstance(raw, list):
        raise PersistenceError("stored data is not a JSON array")

    records: list[PolicyRecord] = []
    for index, item in enumerate(raw):
        try:
            if not isinstance(item, dict):
                raise TypeError("entry is not an object")
            records.append(PolicyRecord.from_dict(item))
        except (TypeError, ValueError, ArithmeticError) as error:
            logger.warning("Dropping stored entry %d: %s", index, error)
    return records


class SqliteBlobGateway:
    """Stores the collection as one JSON value under a fixed namespace key."""

    def __init__(
        self,
        pool: ThreadLocalConnection,
        namespace: str,
        crypto: CryptoService | None = None,
    ):
        self._pool = pool
        self._namespace = namespace
        self._crypto = crypto

    def load(self) -> list[PolicyRecord]:
        try:
            row = self._pool.fetchone(
                "SELECT value, encrypted FROM kv_store WHERE key = ?",
                (self._namespace,),
            )
        except sqlite3.Error as error:
            raise PersistenceError(f"could not read storage: {error}") from error
        if row is None:
            return []

        value = row["value"]
        if row["encrypted"]:
            if self._crypto is None:
                raise PersistenceError("stored data is encrypted but no key is configured")
            try:
                payload = self._crypto.decrypt_text(bytes(value))
            except ValueError as error:
                raise PersistenceError(str(error)) from error
        else:
            payload = value.decode("utf-8") if isinstance(value, bytes) else str(value)
        return deserialize_records(payload)

    def save(self, records: list[PolicyRecord]) -> None:
        payload = serialize_records(records)
        if self._crypto is not None:
            value: bytes | str = self._crypto.encrypt_text(payload)
            encrypted = 1
        else:
            value = payload
            encrypted = 0
        try:
            self._pool.execute(
                """
                INSERT INTO kv_store (key, value, encrypted, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    encrypted = excluded.encrypted,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (self._namespace, value, encrypted),
            )
        except sqlite3.Error as error:
            raise PersistenceError(f"could not write storage: {error}") from error
        logger.debug("Saved %d records under %s", len(records), self._namespace)


class MemoryBlobGateway:
    """In-process key-value store with the same JSON encoding."""

    def __init__(self, namespace: str = "insuranceData"):
        self.namespace = namespace
        self.blobs: dict[str, str] = {}

    def load(self) -> list[PolicyRecord]:
        payload = self.blobs.get(self.namespace)
        if payload is None:
            return []
        return deserialize_records(payload)

    def save(self, records: list[PolicyRecord]) -> None:
        self.blobs[self.namespace] = serialize_records(records)
