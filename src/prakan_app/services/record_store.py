"""Authoritative in-memory policy collection with persistence and change notification."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from prakan_app.core.errors import (
    ImportRowSkipped,
    MalformedRecordError,
    PersistenceError,
    PersistenceWarning,
    RecordNotFoundError,
)
from prakan_app.core.logger import get_logger
from prakan_app.models.policy import (
    AMOUNT_FIELDS,
    MAX_AMOUNT,
    REQUIRED_FIELDS,
    PolicyDraft,
    PolicyRecord,
)
from prakan_app.repositories.blob_gateway import PersistenceGateway

logger = get_logger(__name__)

StoreListener = Callable[[tuple[PolicyRecord, ...]], None]


def new_record_id() -> str:
    return uuid.uuid4().hex


def utc_timestamp() -> str:
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


@dataclass
class BulkInsertResult:
    """Outcome of bulk_insert; each row is reported independently."""

    created: list[PolicyRecord] = field(default_factory=list)
    skipped: list[ImportRowSkipped] = field(default_factory=list)


@dataclass(frozen=True)
class StoreSummary:
    record_count: int
    total_amount: Decimal


def check_required_fields(draft: PolicyDraft) -> None:
    """Raise MalformedRecordError when a non-optional field is absent, mistyped or out of range."""
    if not isinstance(draft, PolicyDraft):
        raise MalformedRecordError(["<record>"])

    missing = [name for name in REQUIRED_FIELDS if not isinstance(getattr(draft, name, None), str)]
    for name in AMOUNT_FIELDS:
        value = getattr(draft, name, None)
        if isinstance(value, bool) or not isinstance(value, (Decimal, int, float)):
            missing.append(name)
        else:
            amount = Decimal(value)
            if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
                missing.append(name)
    if missing:
        raise MalformedRecordError(missing)


class RecordStore:
    """Owns the policy collection; every mutation saves and notifies listeners.

    Records are kept in an insertion-ordered dict keyed by id, so lookups are
    O(1) and all() returns insertion order. update() replaces a record in
    place, keeping its position, id and created_at.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        id_factory: Callable[[], str] = new_record_id,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self._gateway = gateway
        self._id_factory = id_factory
        self._clock = clock
        self._records: dict[str, PolicyRecord] = {}
        self._listeners: list[StoreListener] = []
        self._warnings: list[PersistenceWarning] = []

    def load(self) -> list[PersistenceWarning]:
        """Replace the collection with the stored one; unreadable storage loads empty."""
        warnings: list[PersistenceWarning] = []
        try:
            loaded = self._gateway.load()
        except PersistenceError as error:
            logger.warning("Loading stored records failed, starting empty: %s", error)
            warning = PersistenceWarning("load", str(error))
            warnings.append(warning)
            self._warnings.append(warning)
            loaded = []

        self._records = {}
        for record in loaded:
            if record.id in self._records:
                logger.warning("Duplicate stored id %s, keeping the first entry", record.id)
                continue
            self._records[record.id] = record
        logger.info("Loaded %d records", len(self._records))
        self._notify()
        return warnings

    def subscribe(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def all(self) -> tuple[PolicyRecord, ...]:
        """Snapshot in insertion order, independent of any view state."""
        return tuple(self._records.values())

    def get(self, record_id: str) -> PolicyRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(record_id) from None

    def create(self, draft: PolicyDraft) -> PolicyRecord:
        """Assign id and created_at, capture the total, append, save, notify."""
        record = self._build(draft)
        self._records[record.id] = record
        logger.info("Created record %s", record.id)
        self._commit()
        return record

    def update(self, record_id: str, draft: PolicyDraft) -> PolicyRecord:
        """Replace the whole record at record_id, keeping id and created_at."""
        current = self.get(record_id)
        check_required_fields(draft)
        record = PolicyRecord.from_draft(draft, current.id, current.created_at)
        self._records[record_id] = record
        logger.info("Updated record %s", record_id)
        self._commit()
        return record

    def delete(self, record_id: str) -> None:
        if record_id not in self._records:
            raise RecordNotFoundError(record_id)
        del self._records[record_id]
        logger.info("Deleted record %s", record_id)
        self._commit()

    def bulk_insert(
        self,
        drafts: Iterable[PolicyDraft],
        row_numbers: Sequence[int] | None = None,
    ) -> BulkInsertResult:
        """Create each draft in order; malformed rows are skipped, not fatal.

        row_numbers labels skipped rows in the report (1-based positions by default).
        """
        result = BulkInsertResult()
        try:
            for position, draft in enumerate(drafts):
                row_number = row_numbers[position] if row_numbers is not None else position + 1
                try:
                    record = self._build(draft)
                except MalformedRecordError as error:
                    result.skipped.append(ImportRowSkipped(row_number, str(error)))
                    continue
                self._records[record.id] = record
                result.created.append(record)
        finally:
            # Rows already appended are saved and announced even if a later row raised.
            logger.info(
                "Bulk insert: %d created, %d skipped",
                len(result.created),
                len(result.skipped),
            )
            if result.created:
                self._commit()
        return result

    def clear_all(self) -> int:
        """Remove every record and return how many were removed."""
        removed = len(self._records)
        self._records = {}
        logger.info("Cleared %d records", removed)
        self._commit()
        return removed

    def summary(self) -> StoreSummary:
        total = sum((record.total_amount for record in self._records.values()), Decimal("0"))
        return StoreSummary(record_count=len(self._records), total_amount=total)

    def drain_warnings(self) -> list[PersistenceWarning]:
        """Hand pending persistence warnings to the caller and forget them."""
        warnings, self._warnings = self._warnings, []
        return warnings

    def _build(self, draft: PolicyDraft) -> PolicyRecord:
        check_required_fields(draft)
        record_id = self._id_factory()
        while record_id in self._records:
            record_id = self._id_factory()
        return PolicyRecord.from_draft(draft, record_id, self._clock())

    def _commit(self) -> None:
        snapshot = self.all()
        try:
            self._gateway.save(list(snapshot))
        except PersistenceError as error:
            # Memory stays authoritative for the session.
            logger.warning("Saving records failed: %s", error)
            self._warnings.append(PersistenceWarning("save", str(error)))
        self._notify(snapshot)

    def _notify(self, snapshot: tuple[PolicyRecord, ...] | None = None) -> None:
        snapshot = self.all() if snapshot is None else snapshot
        for listener in list(self._listeners):
            listener(snapshot)
