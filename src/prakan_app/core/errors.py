"""Error types shared by the record store, import/export and persistence."""

from __future__ import annotations

from dataclasses import dataclass


class PrakanError(Exception):
    """Base class for application errors."""


class MalformedRecordError(PrakanError, ValueError):
    """A record is missing a field the schema declares non-optional."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"ข้อมูลไม่ครบหรือไม่ถูกต้อง: {', '.join(missing)}")


class RecordNotFoundError(PrakanError, LookupError):
    """update/delete addressed an id that is not in the collection."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"ไม่พบรายการ id={record_id}")


class CodecError(PrakanError, ValueError):
    """An import file could not be read or parsed."""


class EmptyExportError(PrakanError):
    """Export requested while the collection is empty."""


class PersistenceError(PrakanError):
    """Raised by a persistence gateway when the backing store fails."""


class PersistenceWarning(UserWarning):
    """Non-fatal save/load failure; in-memory state stays authoritative."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


@dataclass(frozen=True)
class ImportRowSkipped:
    """One bulk-import row that could not become a record."""

    row_number: int
    reason: str

    def __str__(self) -> str:
        return f"แถวที่ {self.row_number}: {self.reason}"
