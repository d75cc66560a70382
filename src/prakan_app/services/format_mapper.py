"""Translation between policy records and flat label-keyed rows.

The Thai column labels in EXPORT_COLUMNS are the interchange contract for
every export format; they must not change between releases.

Import fills documented defaults for absent columns and never rejects a
mapping row; the record store still skips rows whose amounts are out of
range. Two edges are lossy on purpose:

* the payment plan travels as its display string ("ผ่อน 6 เดือน") and is
  re-parsed best effort, so the month selector vs. free-text override split
  may collapse;
* id and created_at are always fresh on import, whatever the file contains.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from prakan_app.core.errors import ImportRowSkipped
from prakan_app.models.policy import (
    DOC_ADDRESS_ID_CARD,
    NON_MEMBER,
    USE_TYPE_PERSONAL,
    PaymentPlan,
    PolicyDraft,
    PolicyRecord,
)

Row = dict[str, Any]

EXPORT_COLUMNS: list[tuple[str, str]] = [
    ("ชื่อลูกค้า", "cust_name"),
    ("ระดับสมาชิก", "member_level"),
    ("รหัสสมาชิก", "member_code"),
    ("เบอร์โทร", "phone"),
    ("ที่อยู่", "address"),
    ("ที่อยู่จัดส่งเอกสาร", "doc_address"),
    ("ทะเบียนรถ", "plate"),
    ("รุ่นรถ", "model"),
    ("ปีรถ", "year"),
    ("เลขเครื่องยนต์", "engine_no"),
    ("VIN", "vin"),
    ("ซีซี", "cc"),
    ("จำนวนที่นั่ง", "seat"),
    ("สีรถ", "color"),
    ("อุปกรณ์ตกแต่ง", "accessory"),
    ("ลักษณะการใช้งาน", "use_type"),
    ("ประเภทประกัน", "insurance_type"),
    ("ประเภทสมัครใจ", "policy_sub_type"),
    ("บริษัทพรบ", "company_prb"),
    ("เบี้ยพรบ", "premium_prb"),
    ("ส่วนลดพรบ", "discount_prb"),
    ("บริษัทสมัครใจ", "company_vol"),
    ("เบี้ยสมัครใจ", "premium_vol"),
    ("ส่วนลดสมัครใจ", "discount_vol"),
    ("ยอดรวม", "total_amount"),
    ("พรบ เริ่ม", "start_prb"),
    ("พรบ หมด", "end_prb"),
    ("สมัครใจ เริ่ม", "start_vol"),
    ("สมัครใจ หมด", "end_vol"),
    ("การชำระเงิน", "payment_plan"),
    ("วันที่บันทึก", "created_at"),
]
EXPORT_LABELS = [label for label, _ in EXPORT_COLUMNS]
LABEL_BY_FIELD = {name: label for label, name in EXPORT_COLUMNS}
# Keys used by the browser version of this app in its own JSON backups.
LEGACY_KEY_BY_FIELD = {
    "cust_name": "custName",
    "member_level": "memberLevel",
    "member_code": "memberCode",
    "doc_address": "docAddress",
    "engine_no": "engineNo",
    "use_type": "useType",
    "insurance_type": "insuranceType",
    "policy_sub_type": "policySubType",
    "company_prb": "companyPRB",
    "premium_prb": "premiumPRB",
    "discount_prb": "discountPRB",
    "company_vol": "companyVOL",
    "premium_vol": "premiumVOL",
    "discount_vol": "discountVOL",
    "total_amount": "totalAmount",
    "start_prb": "startPRB",
    "end_prb": "endPRB",
    "start_vol": "startVOL",
    "end_vol": "endVOL",
    "payment_plan": "paymentType",
}

TEXT_DEFAULTS: dict[str, str] = {
    "member_level": NON_MEMBER,
    "doc_address": DOC_ADDRESS_ID_CARD,
    "use_type": USE_TYPE_PERSONAL,
}
TEXT_FIELDS = [
    "cust_name",
    "member_level",
    "member_code",
    "phone",
    "address",
    "doc_address",
    "plate",
    "model",
    "year",
    "engine_no",
    "vin",
    "cc",
    "seat",
    "color",
    "accessory",
    "use_type",
    "insurance_type",
    "policy_sub_type",
    "company_prb",
    "company_vol",
    "start_prb",
    "end_prb",
    "start_vol",
    "end_vol",
]
NUMERIC_FIELDS = ["premium_prb", "discount_prb", "premium_vol", "discount_vol", "total_amount"]


@dataclass
class MappedRows:
    """Drafts ready for bulk insert, with their 1-based source row numbers."""

    drafts: list[PolicyDraft] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    skipped: list[ImportRowSkipped] = field(default_factory=list)


def record_to_row(record: PolicyRecord) -> Row:
    """One export row keyed by the fixed labels; dates stay ISO."""
    row: Row = {}
    for label, name in EXPORT_COLUMNS:
        value = getattr(record, name)
        if name == "payment_plan":
            value = value.describe()
        row[label] = value
    return row


def records_to_rows(records: Iterable[PolicyRecord]) -> list[Row]:
    return [record_to_row(record) for record in records]


def to_text(value: Any) -> str:
    """Coerce a cell value to text without trimming it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def parse_number(value: Any) -> Decimal:
    """Parse an amount cell; anything non-numeric becomes zero; the store rejects out-of-range amounts."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        number = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return Decimal("0")
        try:
            number = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def _lookup(row: Mapping[str, Any], name: str) -> Any:
    label = LABEL_BY_FIELD[name]
    if label in row:
        return row[label]
    if name in row:
        return row[name]
    return row.get(LEGACY_KEY_BY_FIELD.get(name, name))


def _payment_plan(value: Any) -> PaymentPlan:
    if isinstance(value, Mapping):
        return PaymentPlan(
            kind=to_text(value.get("kind")) or PaymentPlan().kind,
            month_option=to_text(value.get("month_option")) or PaymentPlan().month_option,
            other_months=to_text(value.get("other_months")),
        )
    return PaymentPlan.parse(to_text(value))


def row_to_draft(row: Mapping[str, Any]) -> PolicyDraft:
    """Map one label-keyed row (or a field-name-keyed backup row) to a draft."""
    normalized = {str(key).strip(): value for key, value in row.items() if key is not None}

    values: dict[str, Any] = {}
    for name in TEXT_FIELDS:
        text = to_text(_lookup(normalized, name))
        values[name] = text if text != "" else TEXT_DEFAULTS.get(name, "")
    for name in NUMERIC_FIELDS:
        values[name] = parse_number(_lookup(normalized, name))

    values["plate"] = values["plate"].upper()
    values["payment_plan"] = _payment_plan(_lookup(normalized, "payment_plan"))
    return PolicyDraft(**values)


def rows_to_drafts(rows: Iterable[Any], first_row_number: int = 1) -> MappedRows:
    """Map every row; only rows that are not mappings at all are skipped."""
    mapped = MappedRows()
    for row_number, row in enumerate(rows, start=first_row_number):
        if not isinstance(row, Mapping):
            mapped.skipped.append(ImportRowSkipped(row_number, "แถวไม่ใช่ข้อมูลแบบคอลัมน์"))
            continue
        mapped.drafts.append(row_to_draft(row))
        mapped.row_numbers.append(row_number)
    return mapped
