"""Policy record domain models."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal
from typing import Any

NON_MEMBER = "ไม่เป็นสมาชิก"
MEMBER_LEVELS = [NON_MEMBER, "Lv.1", "Lv.2", "Lv.3"]

DOC_ADDRESS_ID_CARD = "ตามบัตรประชาชน"
DOC_ADDRESS_OTHER = "ที่อยู่อื่น"

USE_TYPE_PERSONAL = "ใช้ส่วนบุคคล"
USE_TYPE_HIRE = "รับจ้าง"
USE_TYPE_OTHER = "อื่นๆ"
KNOWN_USE_TYPES = [USE_TYPE_PERSONAL, USE_TYPE_HIRE]

INSURANCE_COMPULSORY = "พรบ"
INSURANCE_VOLUNTARY = "สมัครใจ"
INSURANCE_BOTH = "พรบ+สมัครใจ"
INSURANCE_TYPES = [INSURANCE_COMPULSORY, INSURANCE_VOLUNTARY, INSURANCE_BOTH]
POLICY_SUB_TYPES = ["ชั้น 1", "ชั้น 2+", "ชั้น 2", "ชั้น 3+", "ชั้น 3"]

PAYMENT_LUMP_SUM = "เต็มจำนวน"
PAYMENT_INSTALLMENT = "ผ่อนชำระ"
INSTALLMENT_MONTH_OPTIONS = {"3m": 3, "6m": 6, "10m": 10}
INSTALLMENT_OTHER = "other"

REQUIRED_FIELDS = ("cust_name", "phone", "plate", "model", "year", "insurance_type")
AMOUNT_FIELDS = (
    "premium_prb",
    "discount_prb",
    "premium_vol",
    "discount_vol",
    "total_amount",
)

CENTS = Decimal("0.01")
# Keeps every total within Decimal precision when quantized to cents.
MAX_AMOUNT = Decimal("999999999999.99")
_FIRST_NUMBER = re.compile(r"\d+")


def supports_sub_type(insurance_type: str) -> bool:
    """Return True when the insurance type carries a voluntary sub-type."""
    return INSURANCE_VOLUNTARY in (insurance_type or "")


@dataclass(frozen=True)
class PaymentPlan:
    """Lump sum, or installments with a month option or free-text override."""

    kind: str = PAYMENT_LUMP_SUM
    month_option: str = "3m"
    other_months: str = ""

    @property
    def is_installment(self) -> bool:
        return self.kind == PAYMENT_INSTALLMENT

    def describe(self) -> str:
        """Compose the display string stored in exports, e.g. 'ผ่อน 6 เดือน'."""
        if not self.is_installment:
            return self.kind or PAYMENT_LUMP_SUM
        if self.month_option in INSTALLMENT_MONTH_OPTIONS:
            return f"ผ่อน {INSTALLMENT_MONTH_OPTIONS[self.month_option]} เดือน"
        if self.other_months.strip():
            return f"ผ่อน {self.other_months.strip()} เดือน"
        return PAYMENT_INSTALLMENT

    @classmethod
    def parse(cls, text: str) -> "PaymentPlan":
        """Best-effort inverse of describe(); month sub-fields may collapse."""
        text = (text or "").strip()
        if "ผ่อน" not in text:
            return cls(kind=PAYMENT_LUMP_SUM)

        match = _FIRST_NUMBER.search(text)
        if match is None:
            override = text.replace(PAYMENT_INSTALLMENT, "").replace("ผ่อน", "")
            override = override.replace("เดือน", "").strip()
            return cls(kind=PAYMENT_INSTALLMENT, month_option=INSTALLMENT_OTHER, other_months=override)

        months = int(match.group())
        for option, option_months in INSTALLMENT_MONTH_OPTIONS.items():
            if months == option_months:
                return cls(kind=PAYMENT_INSTALLMENT, month_option=option)
        return cls(kind=PAYMENT_INSTALLMENT, month_option=INSTALLMENT_OTHER, other_months=str(months))


@dataclass(kw_only=True)
class PolicyDraft:
    """Input model for one policy entry, everything except identity."""

    cust_name: str
    phone: str
    plate: str
    model: str
    year: str
    insurance_type: str

    member_level: str = NON_MEMBER
    member_code: str = ""
    address: str = ""
    doc_address: str = DOC_ADDRESS_ID_CARD

    engine_no: str = ""
    vin: str = ""
    cc: str = ""
    seat: str = ""
    color: str = ""
    accessory: str = ""
    use_type: str = USE_TYPE_PERSONAL

    policy_sub_type: str = ""
    company_prb: str = ""
    premium_prb: Decimal = Decimal("0")
    discount_prb: Decimal = Decimal("0")
    company_vol: str = ""
    premium_vol: Decimal = Decimal("0")
    discount_vol: Decimal = Decimal("0")
    start_prb: str = ""
    end_prb: str = ""
    start_vol: str = ""
    end_vol: str = ""
    payment_plan: PaymentPlan = field(default_factory=PaymentPlan)
    total_amount: Decimal = Decimal("0")

    def compute_total(self) -> Decimal:
        """(premium_prb - discount_prb) + (premium_vol - discount_vol), in cents."""
        total = (Decimal(self.premium_prb) - Decimal(self.discount_prb)) + (
            Decimal(self.premium_vol) - Decimal(self.discount_vol)
        )
        return total.quantize(CENTS)

    def draft_values(self) -> dict[str, Any]:
        """Return the draft fields only, as a shallow dict."""
        return {item.name: getattr(self, item.name) for item in fields(PolicyDraft)}


@dataclass(kw_only=True)
class PolicyRecord(PolicyDraft):
    """Stored policy entry with identity assigned by the record store."""

    id: str
    created_at: str

    @classmethod
    def from_draft(cls, draft: PolicyDraft, record_id: str, created_at: str) -> "PolicyRecord":
        """Build a record, capturing the total at this moment."""
        values = draft.draft_values()
        values["total_amount"] = draft.compute_total()
        return cls(id=record_id, created_at=created_at, **values)

    def to_draft(self) -> PolicyDraft:
        return PolicyDraft(**self.draft_values())

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dict used by the persistence gateway."""
        data = asdict(self)
        for name in AMOUNT_FIELDS:
            data[name] = str(getattr(self, name))
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PolicyRecord":
        """Rebuild a record from to_dict() output; raises on malformed input."""
        values = dict(data)
        for name in AMOUNT_FIELDS:
            if name in values:
                values[name] = Decimal(str(values[name]))
        plan = values.get("payment_plan")
        if isinstance(plan, dict):
            values["payment_plan"] = PaymentPlan(**plan)
        elif isinstance(plan, str):
            values["payment_plan"] = PaymentPlan.parse(plan)
        known = {item.name for item in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})
