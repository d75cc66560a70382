"""Input validation rules for the policy form."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from prakan_app.models.policy import MAX_AMOUNT

PHONE_DIGITS_PATTERN = re.compile(r"^\d{10}$")
MIN_VEHICLE_YEAR = 1900
MIN_NAME_LENGTH = 2


def validate_required_text(value: str, field_name: str) -> str:
    """Validate non-empty text fields."""
    normalized = (value or "").strip()
    if not normalized:
        raise ValueError(f"กรุณากรอก{field_name}")
    return normalized


def validate_customer_name(name: str) -> str:
    """Require a customer name of at least two characters."""
    normalized = validate_required_text(name, "ชื่อลูกค้า")
    if len(normalized) < MIN_NAME_LENGTH:
        raise ValueError(f"กรุณากรอกชื่อลูกค้าอย่างน้อย {MIN_NAME_LENGTH} ตัวอักษร")
    return normalized


def validate_phone(phone: str) -> str:
    """Validate a 10-digit phone number; dashes are allowed and kept."""
    normalized = validate_required_text(phone, "เบอร์โทรศัพท์")
    if not PHONE_DIGITS_PATTERN.match(normalized.replace("-", "")):
        raise ValueError("กรุณากรอกเบอร์โทรศัพท์ให้ถูกต้อง (10 หลัก)")
    return normalized


def validate_vehicle_year(year: str, today: date | None = None) -> str:
    """Accept 1900 through next year."""
    normalized = validate_required_text(year, "ปีรถ")
    max_year = (today or date.today()).year + 1
    try:
        value = int(normalized)
    except ValueError as error:
        raise ValueError(f"กรุณากรอกปีรถระหว่าง {MIN_VEHICLE_YEAR} - {max_year}") from error
    if value < MIN_VEHICLE_YEAR or value > max_year:
        raise ValueError(f"กรุณากรอกปีรถระหว่าง {MIN_VEHICLE_YEAR} - {max_year}")
    return normalized


def validate_plate(plate: str) -> str:
    """Plates are free-form but stored uppercase."""
    return validate_required_text(plate, "ทะเบียนรถ").upper()


def parse_amount(value: str, field_name: str) -> Decimal:
    """Parse a form amount; blank means zero, negatives are rejected."""
    normalized = (value or "").strip().replace(",", "")
    if not normalized:
        return Decimal("0")
    try:
        amount = Decimal(normalized)
    except InvalidOperation as error:
        raise ValueError(f"{field_name}ต้องเป็นตัวเลข") from error
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"{field_name}ต้องเป็นตัวเลขที่ไม่ติดลบ")
    if amount > MAX_AMOUNT:
        raise ValueError(f"{field_name}ต้องไม่เกิน {MAX_AMOUNT:,}")
    return amount


def validate_optional_date(value: str, field_name: str) -> str:
    """Validate optional YYYY-MM-DD dates, returning the normalized text."""
    normalized = (value or "").strip()
    if not normalized:
        return ""
    try:
        return date.fromisoformat(normalized).isoformat()
    except ValueError as error:
        raise ValueError(f"{field_name} ต้องอยู่ในรูปแบบ YYYY-MM-DD") from error
