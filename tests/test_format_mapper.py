"""Tests for record <-> row mapping."""

from __future__ import annotations

from decimal import Decimal

from conftest import make_draft
from prakan_app.models.policy import (
    DOC_ADDRESS_ID_CARD,
    INSTALLMENT_OTHER,
    NON_MEMBER,
    PAYMENT_INSTALLMENT,
    USE_TYPE_PERSONAL,
    PaymentPlan,
    PolicyRecord,
)
from prakan_app.services.format_mapper import (
    EXPORT_LABELS,
    parse_number,
    record_to_row,
    row_to_draft,
    rows_to_drafts,
)


def test_record_to_row_uses_fixed_labels() -> None:
    plan = PaymentPlan(kind=PAYMENT_INSTALLMENT, month_option="6m")
    record = PolicyRecord.from_draft(make_draft(payment_plan=plan), "r1", "2024-01-15T10:00:00")

    row = record_to_row(record)

    assert list(row) == EXPORT_LABELS
    assert row["ชื่อลูกค้า"] == "สมชาย ใจดี"
    assert row["ยอดรวม"] == Decimal("5400.00")
    assert row["การชำระเงิน"] == "ผ่อน 6 เดือน"
    assert row["วันที่บันทึก"] == "2024-01-15T10:00:00"


def test_missing_columns_get_defaults() -> None:
    draft = row_to_draft({"ชื่อลูกค้า": "ลูกค้าใหม่", "ทะเบียนรถ": "ab-99", "ยอดรวม": "abc"})

    assert draft.cust_name == "ลูกค้าใหม่"
    assert draft.plate == "AB-99"
    assert draft.member_level == NON_MEMBER
    assert draft.doc_address == DOC_ADDRESS_ID_CARD
    assert draft.use_type == USE_TYPE_PERSONAL
    assert draft.phone == ""
    assert draft.premium_prb == Decimal("0")
    assert draft.total_amount == Decimal("0")
    assert not draft.payment_plan.is_installment


def test_unknown_labels_are_ignored_and_field_names_accepted() -> None:
    draft = row_to_draft(
        {
            " Customer ": "ignored",
            "cust_name": "Backup Name",
            "premium_vol": 2500,
            "year": 2019.0,
            "payment_plan": {"kind": PAYMENT_INSTALLMENT, "month_option": INSTALLMENT_OTHER, "other_months": "7"},
        }
    )

    assert draft.cust_name == "Backup Name"
    assert draft.premium_vol == Decimal("2500")
    assert draft.year == "2019"
    assert draft.payment_plan.describe() == "ผ่อน 7 เดือน"


def test_parse_number_fallbacks() -> None:
    assert parse_number("1,500.25") == Decimal("1500.25")
    assert parse_number(None) == Decimal("0")
    assert parse_number("") == Decimal("0")
    assert parse_number("Infinity") == Decimal("0")
    assert parse_number(True) == Decimal("0")
    assert parse_number(750.5) == Decimal("750.5")


def test_rows_that_are_not_mappings_are_skipped_with_row_numbers() -> None:
    mapped = rows_to_drafts([{"ชื่อลูกค้า": "ก ข"}, ["not", "a", "row"], {}], first_row_number=2)

    assert mapped.row_numbers == [2, 4]
    assert len(mapped.drafts) == 2
    assert [entry.row_number for entry in mapped.skipped] == [3]


def test_browser_backup_keys_are_accepted() -> None:
    draft = row_to_draft(
        {
            "custName": "สมชาย ใจดี",
            "memberLevel": "Lv.2",
            "plate": "กข-1234",
            "premiumPRB": 600,
            "discountVOL": "50",
            "policySubType": "ชั้น 1",
            "endVOL": "2025-01-01",
            "paymentType": "ผ่อน 3 เดือน",
        }
    )

    assert draft.cust_name == "สมชาย ใจดี"
    assert draft.member_level == "Lv.2"
    assert draft.premium_prb == Decimal("600")
    assert draft.discount_vol == Decimal("50")
    assert draft.policy_sub_type == "ชั้น 1"
    assert draft.end_vol == "2025-01-01"
    assert draft.payment_plan == PaymentPlan(kind=PAYMENT_INSTALLMENT, month_option="3m")
