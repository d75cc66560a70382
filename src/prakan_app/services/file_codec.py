"""Byte-level readers and writers for JSON, CSV and XLSX tabular files."""

from __future__ import annotations

import csv
import io
import json
import zipfile
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from prakan_app.core.errors import CodecError

CSV_BOM = "\ufeff"
EXPORT_FILE_PREFIX = "insurance_data"
XLSX_SHEET_TITLE = "ข้อมูลประกันรถยนต์"
XLSX_MIN_COLUMN_WIDTH = 12


class FileFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"

    @classmethod
    def from_filename(cls, filename: str | Path) -> "FileFormat":
        suffix = Path(filename).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError as error:
            raise CodecError(f"ไม่รองรับไฟล์ประเภท .{suffix or '?'}") from error


def suggest_filename(fmt: FileFormat, today: date | None = None) -> str:
    """insurance_data_YYYY-MM-DD.<ext>"""
    stamp = (today or date.today()).isoformat()
    return f"{EXPORT_FILE_PREFIX}_{stamp}.{fmt.value}"


def decode_rows(data: bytes, fmt: FileFormat) -> list[Any]:
    """Turn file bytes into rows; raise CodecError when the file is unreadable."""
    if fmt is FileFormat.JSON:
        return _decode_json(data)
    if fmt is FileFormat.CSV:
        return _decode_csv(data)
    return _decode_xlsx(data)


def encode_rows(rows: Iterable[dict[str, Any]], fmt: FileFormat, columns: Sequence[str]) -> bytes:
    rows = list(rows)
    if fmt is FileFormat.JSON:
        return _encode_json(rows, columns)
    if fmt is FileFormat.CSV:
        return _encode_csv(rows, columns)
    return _encode_xlsx(rows, columns)


def _decode_json(data: bytes) -> list[Any]:
    try:
        raw = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise CodecError(f"อ่านไฟล์ JSON ไม่ได้: {error}") from error
    if isinstance(raw, dict) and isinstance(raw.get("records"), list):
        raw = raw["records"]
    if not isinstance(raw, list):
        raise CodecError("ไฟล์ JSON ต้องเป็นรายการข้อมูล (array)")
    return raw


def _decode_csv(data: bytes) -> list[Any]:
    try:
        text = data.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text, newline=""))
        if not reader.fieldnames:
            raise CodecError("ไฟล์ CSV ไม่มีหัวคอลัมน์")
        return [dict(row) for row in reader]
    except (UnicodeDecodeError, csv.Error) as error:
        raise CodecError(f"อ่านไฟล์ CSV ไม่ได้: {error}") from error


def _decode_xlsx(data: bytes) -> list[Any]:
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as error:
        raise CodecError(f"อ่านไฟล์ Excel ไม่ได้: {error}") from error

    try:
        if not workbook.sheetnames:
            raise CodecError("ไฟล์ Excel ไม่มีชีต")
        sheet = workbook[workbook.sheetnames[0]]
        lines = sheet.iter_rows(values_only=True)
        header = next(lines, None)
        if header is None or all(cell in (None, "") for cell in header):
            raise CodecError("ไฟล์ Excel ไม่มีหัวคอลัมน์")
        labels = ["" if cell is None else str(cell).strip() for cell in header]

        rows: list[Any] = []
        for line in lines:
            if all(cell in (None, "") for cell in line):
                continue
            rows.append(
                {
                    label: "" if cell is None else cell
                    for label, cell in zip(labels, line)
                    if label
                }
            )
        return rows
    finally:
        workbook.close()


def _json_number(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode_json(rows: list[dict[str, Any]], columns: Sequence[str]) -> bytes:
    ordered = [{label: row.get(label, "") for label in columns} for row in rows]
    return json.dumps(ordered, ensure_ascii=False, indent=2, default=_json_number).encode("utf-8")


def _encode_csv(rows: list[dict[str, Any]], columns: Sequence[str]) -> bytes:
    buffer = io.StringIO()
    # Text cells are double-quoted, numeric cells are written bare.
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([row.get(label, "") for label in columns])
    return (CSV_BOM + buffer.getvalue()).encode("utf-8")


def _xlsx_text(value: str) -> str:
    """Drop control characters the XLSX format cannot store."""
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def _encode_xlsx(rows: list[dict[str, Any]], columns: Sequence[str]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = XLSX_SHEET_TITLE
    sheet.append([_xlsx_text(label) for label in columns])
    for row_index, row in enumerate(rows, start=2):
        for column_index, label in enumerate(columns, start=1):
            value = row.get(label, "")
            if isinstance(value, str):
                cell = sheet.cell(row=row_index, column=column_index, value=_xlsx_text(value))
                # A leading "=" would otherwise be stored as a formula and read back empty.
                cell.data_type = "s"
            else:
                sheet.cell(row=row_index, column=column_index, value=value)

    for index, label in enumerate(columns, start=1):
        width = max(XLSX_MIN_COLUMN_WIDTH, len(label) + 4)
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
