"""Policy use cases for the UI: validate form input, then delegate to the store."""

from __future__ import annotations

import random
from dataclasses import replace
from decimal import Decimal

from prakan_app.core.errors import PersistenceWarning
from prakan_app.core.validation import (
    validate_customer_name,
    validate_optional_date,
    validate_phone,
    validate_plate,
    validate_required_text,
    validate_vehicle_year,
)
from prakan_app.models.policy import (
    DOC_ADDRESS_ID_CARD,
    DOC_ADDRESS_OTHER,
    INSURANCE_BOTH,
    INSURANCE_COMPULSORY,
    INSURANCE_VOLUNTARY,
    NON_MEMBER,
    USE_TYPE_PERSONAL,
    PolicyDraft,
    PolicyRecord,
    supports_sub_type,
)
from prakan_app.services.record_store import RecordStore, StoreSummary

SAMPLE_CUSTOMERS = [
    {
        "cust_name": "สมชาย ใจดี",
        "member_level": "Lv.3",
        "member_code": "MEM001",
        "phone": "0812345678",
        "address": "123 ถนนสุขุมวิท แขวงคลองเตย กรุงเทพฯ",
        "plate": "กข-1234",
        "model": "Toyota Vios",
        "year": "2020",
        "insurance_type": INSURANCE_BOTH,
    },
    {
        "cust_name": "สมหญิง รักเรียน",
        "member_level": "Lv.1",
        "phone": "0898765432",
        "address": "456 ถนนลาดพร้าว เขตจตุจักร กรุงเทพฯ",
        "plate": "คง-5678",
        "model": "Honda City",
        "year": "2019",
        "insurance_type": INSURANCE_VOLUNTARY,
    },
    {
        "cust_name": "วิชัย มั่งมี",
        "member_level": NON_MEMBER,
        "phone": "0856789012",
        "address": "789 ถนนรามคำแหง เขตมีนบุรี กรุงเทพฯ",
        "plate": "จฉ-9012",
        "model": "Mazda CX-5",
        "year": "2021",
        "insurance_type": INSURANCE_COMPULSORY,
    },
]


class PolicyService:
    """Coordinates policy use cases."""

    def __init__(self, store: RecordStore):
        self._store = store

    @staticmethod
    def _validate(payload: PolicyDraft) -> PolicyDraft:
        member_level = payload.member_level.strip() or NON_MEMBER
        doc_address = payload.doc_address.strip()
        if not doc_address or doc_address == DOC_ADDRESS_OTHER:
            doc_address = DOC_ADDRESS_ID_CARD
        insurance_type = validate_required_text(payload.insurance_type, "ประเภทประกัน")

        return replace(
            payload,
            cust_name=validate_customer_name(payload.cust_name),
            member_level=member_level,
            member_code="" if member_level == NON_MEMBER else payload.member_code.strip(),
            phone=validate_phone(payload.phone),
            address=payload.address.strip(),
            doc_address=doc_address,
            plate=validate_plate(payload.plate),
            model=validate_required_text(payload.model, "รุ่นรถ"),
            year=validate_vehicle_year(payload.year),
            engine_no=payload.engine_no.strip(),
            vin=payload.vin.strip(),
            cc=payload.cc.strip(),
            seat=payload.seat.strip(),
            color=payload.color.strip(),
            accessory=payload.accessory.strip(),
            use_type=payload.use_type.strip() or USE_TYPE_PERSONAL,
            insurance_type=insurance_type,
            policy_sub_type=payload.policy_sub_type if supports_sub_type(insurance_type) else "",
            company_prb=payload.company_prb.strip(),
            company_vol=payload.company_vol.strip(),
            start_prb=validate_optional_date(payload.start_prb, "วันเริ่ม พรบ"),
            end_prb=validate_optional_date(payload.end_prb, "วันหมด พรบ"),
            start_vol=validate_optional_date(payload.start_vol, "วันเริ่ม สมัครใจ"),
            end_vol=validate_optional_date(payload.end_vol, "วันหมด สมัครใจ"),
        )

    @staticmethod
    def compute_total(payload: PolicyDraft) -> Decimal:
        """Total shown in the form before saving."""
        return payload.compute_total()

    def create_policy(self, payload: PolicyDraft) -> PolicyRecord:
        """Validate and store a new policy."""
        return self._store.create(self._validate(payload))

    def update_policy(self, record_id: str, payload: PolicyDraft) -> PolicyRecord:
        """Validate and replace the policy stored under record_id."""
        return self._store.update(record_id, self._validate(payload))

    def delete_policy(self, record_id: str) -> None:
        self._store.delete(record_id)

    def get_policy(self, record_id: str) -> PolicyRecord:
        return self._store.get(record_id)

    def clear_all(self) -> int:
        return self._store.clear_all()

    def summary(self) -> StoreSummary:
        return self._store.summary()

    def drain_warnings(self) -> list[PersistenceWarning]:
        return self._store.drain_warnings()

    def generate_sample_policies(self, rng: random.Random | None = None) -> list[PolicyRecord]:
        """Create the demo customers with random premiums."""
        rng = rng or random.Random()
        created: list[PolicyRecord] = []
        for sample in SAMPLE_CUSTOMERS:
            draft = PolicyDraft(**sample)
            if INSURANCE_COMPULSORY in draft.insurance_type:
                draft.premium_prb = Decimal(rng.randint(500, 999))
            if supports_sub_type(draft.insurance_type):
                draft.premium_vol = Decimal(rng.randint(2000, 6999))
            created.append(self.create_policy(draft))
        return created
