"""Import and export of the policy collection through tabular files."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from prakan_app.core.errors import CodecError, EmptyExportError, ImportRowSkipped
from prakan_app.core.logger import get_logger
from prakan_app.services.file_codec import (
    FileFormat,
    decode_rows,
    encode_rows,
    suggest_filename,
)
from prakan_app.services.format_mapper import EXPORT_LABELS, records_to_rows, rows_to_drafts
from prakan_app.services.record_store import RecordStore

logger = get_logger(__name__)

MAX_ERROR_MESSAGES = 10


@dataclass
class DecodedFile:
    """Rows read from a file, not yet inserted."""

    rows: list[Any]
    fmt: FileFormat

    @property
    def first_row_number(self) -> int:
        # CSV and XLSX rows start after the header line.
        return 1 if self.fmt is FileFormat.JSON else 2


@dataclass
class ImportResult:
    """Result summary for imports."""

    created_count: int
    skipped_count: int
    error_messages: list[str]


@dataclass
class ExportPayload:
    data: bytes
    filename: str
    fmt: FileFormat
    record_count: int


class TransferService:
    """Runs read -> map -> bulk insert for imports and all() -> rows -> bytes for exports."""

    def __init__(self, store: RecordStore):
        self._store = store
        self._import_lock = threading.Lock()

    @staticmethod
    def decode_file(file_path: str | Path) -> DecodedFile:
        """Read and parse a file without touching the store."""
        path = Path(file_path)
        fmt = FileFormat.from_filename(path)
        try:
            data = path.read_bytes()
        except OSError as error:
            raise CodecError(f"เปิดไฟล์ไม่ได้: {error}") from error
        return DecodedFile(rows=decode_rows(data, fmt), fmt=fmt)

    @staticmethod
    def decode_bytes(data: bytes, fmt: FileFormat) -> DecodedFile:
        return DecodedFile(rows=decode_rows(data, fmt), fmt=fmt)

    def insert_rows(self, decoded: DecodedFile) -> ImportResult:
        """Map decoded rows and bulk insert them; one import at a time per store."""
        with self._import_lock:
            mapped = rows_to_drafts(decoded.rows, first_row_number=decoded.first_row_number)
            inserted = self._store.bulk_insert(mapped.drafts, mapped.row_numbers)

        skipped: list[ImportRowSkipped] = sorted(
            mapped.skipped + inserted.skipped,
            key=lambda entry: entry.row_number,
        )
        logger.info(
            "Imported %s file: %d created, %d skipped",
            decoded.fmt.value,
            len(inserted.created),
            len(skipped),
        )
        return ImportResult(
            created_count=len(inserted.created),
            skipped_count=len(skipped),
            error_messages=[str(entry) for entry in skipped[:MAX_ERROR_MESSAGES]],
        )

    def import_file(self, file_path: str | Path) -> ImportResult:
        """Import a JSON/CSV/XLSX file; CodecError means nothing was inserted."""
        return self.insert_rows(self.decode_file(file_path))

    def import_bytes(self, data: bytes, fmt: FileFormat) -> ImportResult:
        return self.insert_rows(self.decode_bytes(data, fmt))

    def export_bytes(self, fmt: FileFormat, today: date | None = None) -> ExportPayload:
        """Encode the whole collection in insertion order, ignoring view state."""
        records = self._store.all()
        if not records:
            raise EmptyExportError("ไม่มีข้อมูลให้ส่งออก")
        data = encode_rows(records_to_rows(records), fmt, EXPORT_LABELS)
        return ExportPayload(
            data=data,
            filename=suggest_filename(fmt, today),
            fmt=fmt,
            record_count=len(records),
        )

    def export_file(self, target: str | Path, fmt: FileFormat | None = None) -> Path:
        """Write an export to target; a directory gets the suggested filename."""
        target = Path(target)
        if fmt is None:
            fmt = FileFormat.XLSX if target.is_dir() else FileFormat.from_filename(target)
        payload = self.export_bytes(fmt)
        if target.is_dir():
            target = target / payload.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload.data)
        logger.info("Exported %d records to %s", payload.record_count, target)
        return target
