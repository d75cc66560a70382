"""Tests for JSON/CSV/XLSX encoding and decoding."""

from __future__ import annotations

import io
import json
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from prakan_app.core.errors import CodecError
from prakan_app.services.file_codec import (
    CSV_BOM,
    XLSX_SHEET_TITLE,
    FileFormat,
    decode_rows,
    encode_rows,
    suggest_filename,
)

COLUMNS = ["ชื่อลูกค้า", "เบี้ยพรบ"]
ROWS = [{"ชื่อลูกค้า": "สมชาย", "เบี้ยพรบ": Decimal("1500.50")}]


def test_format_from_filename() -> None:
    assert FileFormat.from_filename("data.XLSX") is FileFormat.XLSX
    assert FileFormat.from_filename("data.json") is FileFormat.JSON
    with pytest.raises(CodecError):
        FileFormat.from_filename("data.xls")
    with pytest.raises(CodecError):
        FileFormat.from_filename("data")


def test_suggest_filename() -> None:
    assert suggest_filename(FileFormat.CSV, date(2024, 3, 5)) == "insurance_data_2024-03-05.csv"


def test_csv_has_bom_and_quotes_text_only() -> None:
    data = encode_rows(ROWS, FileFormat.CSV, COLUMNS)
    text = data.decode("utf-8")

    assert text.startswith(CSV_BOM)
    assert text[len(CSV_BOM):].splitlines() == ['"ชื่อลูกค้า","เบี้ยพรบ"', '"สมชาย",1500.50']
    assert decode_rows(data, FileFormat.CSV) == [{"ชื่อลูกค้า": "สมชาย", "เบี้ยพรบ": "1500.50"}]


def test_csv_without_header_is_rejected() -> None:
    with pytest.raises(CodecError):
        decode_rows(b"", FileFormat.CSV)


def test_json_numbers_and_records_wrapper() -> None:
    data = encode_rows(ROWS + [{"ชื่อลูกค้า": "B", "เบี้ยพรบ": Decimal("800")}], FileFormat.JSON, COLUMNS)

    decoded = json.loads(data)
    assert decoded[0]["เบี้ยพรบ"] == 1500.5
    assert decoded[1]["เบี้ยพรบ"] == 800
    wrapped = json.dumps({"records": decoded}).encode("utf-8")
    assert decode_rows(wrapped, FileFormat.JSON) == decoded


def test_json_errors() -> None:
    with pytest.raises(CodecError):
        decode_rows(b"{broken", FileFormat.JSON)
    with pytest.raises(CodecError):
        decode_rows(b'{"name": 1}', FileFormat.JSON)


def test_xlsx_round_trip_uses_first_sheet_and_skips_blank_lines() -> None:
    data = encode_rows(ROWS, FileFormat.XLSX, COLUMNS)
    workbook = load_workbook(io.BytesIO(data))
    assert workbook.sheetnames == [XLSX_SHEET_TITLE]

    sheet = workbook.active
    sheet.append([None, None])
    sheet.append(["วิชัย", None])
    buffer = io.BytesIO()
    workbook.save(buffer)

    rows = decode_rows(buffer.getvalue(), FileFormat.XLSX)
    assert [row["ชื่อลูกค้า"] for row in rows] == ["สมชาย", "วิชัย"]
    assert rows[0]["เบี้ยพรบ"] == pytest.approx(1500.5)
    assert rows[1].get("เบี้ยพรบ", "") == ""


def test_xlsx_without_header_or_garbage_is_rejected() -> None:
    buffer = io.BytesIO()
    Workbook().save(buffer)
    with pytest.raises(CodecError):
        decode_rows(buffer.getvalue(), FileFormat.XLSX)
    with pytest.raises(CodecError):
        decode_rows(b"not a zip file", FileFormat.XLSX)


def test_xlsx_text_starting_with_equals_stays_text() -> None:
    data = encode_rows([{"ชื่อลูกค้า": "=SUM(A1)", "เบี้ยพรบ": Decimal("1")}], FileFormat.XLSX, COLUMNS)

    assert decode_rows(data, FileFormat.XLSX)[0]["ชื่อลูกค้า"] == "=SUM(A1)"
