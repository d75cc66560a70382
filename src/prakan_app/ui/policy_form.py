"""Dialog for entering or editing one policy."""

from __future__ import annotations

from datetime import date

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QMessageBox,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from prakan_app.core.formatting import format_currency
from prakan_app.core.validation import parse_amount
from prakan_app.models.policy import (
    DOC_ADDRESS_ID_CARD,
    DOC_ADDRESS_OTHER,
    INSTALLMENT_MONTH_OPTIONS,
    INSTALLMENT_OTHER,
    INSURANCE_TYPES,
    KNOWN_USE_TYPES,
    MEMBER_LEVELS,
    NON_MEMBER,
    PAYMENT_INSTALLMENT,
    PAYMENT_LUMP_SUM,
    POLICY_SUB_TYPES,
    USE_TYPE_OTHER,
    PaymentPlan,
    PolicyDraft,
    PolicyRecord,
    supports_sub_type,
)


def _one_year_later(today: date) -> date:
    try:
        return today.replace(year=today.year + 1)
    except ValueError:
        return today.replace(year=today.year + 1, day=28)


class PolicyFormDialog(QDialog):
    """Collects a PolicyDraft; validation happens in PolicyService on accept."""

    def __init__(self, parent: QWidget | None = None, record: PolicyRecord | None = None):
        super().__init__(parent)
        self.setWindowTitle("แก้ไขข้อมูลประกัน" if record else "เพิ่มข้อมูลประกัน")
        self.resize(720, 820)
        self._draft: PolicyDraft | None = None

        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.addWidget(self._build_customer_group())
        content_layout.addWidget(self._build_vehicle_group())
        content_layout.addWidget(self._build_policy_group())

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(content)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(scroll)
        layout.addWidget(buttons)

        self._set_date_defaults()
        if record is not None:
            self.populate(record)
        self._refresh_toggles()
        self._update_total()

    def _build_customer_group(self) -> QGroupBox:
        group = QGroupBox("ข้อมูลลูกค้า")
        form = QFormLayout(group)
        self.cust_name_input = QLineEdit()
        self.member_level_input = QComboBox()
        self.member_level_input.addItems(MEMBER_LEVELS)
        self.member_level_input.currentIndexChanged.connect(self._refresh_toggles)
        self.member_code_input = QLineEdit()
        self.phone_input = QLineEdit()
        self.phone_input.setPlaceholderText("0812345678")
        self.address_input = QLineEdit()
        self.doc_address_type_input = QComboBox()
        self.doc_address_type_input.addItems([DOC_ADDRESS_ID_CARD, DOC_ADDRESS_OTHER])
        self.doc_address_type_input.currentIndexChanged.connect(self._refresh_toggles)
        self.doc_address_input = QLineEdit()

        form.addRow("ชื่อลูกค้า *", self.cust_name_input)
        form.addRow("ระดับสมาชิก", self.member_level_input)
        form.addRow("รหัสสมาชิก", self.member_code_input)
        form.addRow("เบอร์โทร *", self.phone_input)
        form.addRow("ที่อยู่", self.address_input)
        form.addRow("ที่อยู่จัดส่งเอกสาร", self.doc_address_type_input)
        form.addRow("", self.doc_address_input)
        return group

    def _build_vehicle_group(self) -> QGroupBox:
        group = QGroupBox("ข้อมูลรถยนต์")
        form = QFormLayout(group)
        self.plate_input = QLineEdit()
        self.model_input = QLineEdit()
        self.year_input = QLineEdit()
        self.engine_no_input = QLineEdit()
        self.vin_input = QLineEdit()
        self.cc_input = QLineEdit()
        self.seat_input = QLineEdit()
        self.color_input = QLineEdit()
        self.accessory_input = QLineEdit()
        self.use_type_input = QComboBox()
        self.use_type_input.addItems([*KNOWN_USE_TYPES, USE_TYPE_OTHER])
        self.use_type_input.currentIndexChanged.connect(self._refresh_toggles)
        self.other_use_type_input = QLineEdit()

        form.addRow("ทะเบียนรถ *", self.plate_input)
        form.addRow("ยี่ห้อ/รุ่น *", self.model_input)
        form.addRow("ปีรถ *", self.year_input)
        form.addRow("เลขเครื่องยนต์", self.engine_no_input)
        form.addRow("VIN", self.vin_input)
        form.addRow("ซีซี", self.cc_input)
        form.addRow("จำนวนที่นั่ง", self.seat_input)
        form.addRow("สีรถ", self.color_input)
        form.addRow("อุปกรณ์ตกแต่ง", self.accessory_input)
        form.addRow("ลักษณะการใช้งาน", self.use_type_input)
        form.addRow("", self.other_use_type_input)
        return group

    def _build_policy_group(self) -> QGroupBox:
        group = QGroupBox("ข้อมูลประกัน")
        form = QFormLayout(group)
        self.insurance_type_input = QComboBox()
        self.insurance_type_input.addItem("-- เลือก --", "")
        for insurance_type in INSURANCE_TYPES:
            self.insurance_type_input.addItem(insurance_type, insurance_type)
        self.insurance_type_input.currentIndexChanged.connect(self._refresh_toggles)
        self.policy_sub_type_input = QComboBox()
        self.policy_sub_type_input.addItem("", "")
        for sub_type in POLICY_SUB_TYPES:
            self.policy_sub_type_input.addItem(sub_type, sub_type)

        self.company_prb_input = QLineEdit()
        self.premium_prb_input = QLineEdit("0")
        self.discount_prb_input = QLineEdit("0")
        self.company_vol_input = QLineEdit()
        self.premium_vol_input = QLineEdit("0")
        self.discount_vol_input = QLineEdit("0")
        for widget in [
            self.premium_prb_input,
            self.discount_prb_input,
            self.premium_vol_input,
            self.discount_vol_input,
        ]:
            widget.textChanged.connect(self._update_total)
        self.total_output = QLineEdit("0.00")
        self.total_output.setReadOnly(True)

        self.start_prb_input = QLineEdit()
        self.end_prb_input = QLineEdit()
        self.start_vol_input = QLineEdit()
        self.end_vol_input = QLineEdit()
        for widget in [self.start_prb_input, self.end_prb_input, self.start_vol_input, self.end_vol_input]:
            widget.setPlaceholderText("YYYY-MM-DD")

        self.payment_type_input = QComboBox()
        self.payment_type_input.addItems([PAYMENT_LUMP_SUM, PAYMENT_INSTALLMENT])
        self.payment_type_input.currentIndexChanged.connect(self._refresh_toggles)
        self.payment_month_input = QComboBox()
        for option, months in INSTALLMENT_MONTH_OPTIONS.items():
            self.payment_month_input.addItem(f"{months} เดือน", option)
        self.payment_month_input.addItem("อื่นๆ", INSTALLMENT_OTHER)
        self.payment_other_input = QLineEdit()
        self.payment_other_input.setPlaceholderText("จำนวนเดือน")
        payment_row = QHBoxLayout()
        payment_row.addWidget(self.payment_type_input)
        payment_row.addWidget(self.payment_month_input)
        payment_row.addWidget(self.payment_other_input)

        form.addRow("ประเภทประกัน *", self.insurance_type_input)
        form.addRow("ประเภทสมัครใจ", self.policy_sub_type_input)
        form.addRow("บริษัท พรบ", self.company_prb_input)
        form.addRow("เบี้ย พรบ", self.premium_prb_input)
        form.addRow("ส่วนลด พรบ", self.discount_prb_input)
        form.addRow("บริษัทสมัครใจ", self.company_vol_input)
        form.addRow("เบี้ยสมัครใจ", self.premium_vol_input)
        form.addRow("ส่วนลดสมัครใจ", self.discount_vol_input)
        form.addRow("ยอดรวม", self.total_output)
        form.addRow("พรบ เริ่ม", self.start_prb_input)
        form.addRow("พรบ หมด", self.end_prb_input)
        form.addRow("สมัครใจ เริ่ม", self.start_vol_input)
        form.addRow("สมัครใจ หมด", self.end_vol_input)
        form.addRow("การชำระเงิน", payment_row)
        return group

    def _set_date_defaults(self) -> None:
        today = date.today()
        next_year = _one_year_later(today).isoformat()
        self.start_prb_input.setText(today.isoformat())
        self.end_prb_input.setText(next_year)
        self.start_vol_input.setText(today.isoformat())
        self.end_vol_input.setText(next_year)

    def _refresh_toggles(self, _index: int = 0) -> None:
        self.member_code_input.setVisible(self.member_level_input.currentText() != NON_MEMBER)
        self.doc_address_input.setVisible(self.doc_address_type_input.currentText() == DOC_ADDRESS_OTHER)
        self.other_use_type_input.setVisible(self.use_type_input.currentText() == USE_TYPE_OTHER)
        self.policy_sub_type_input.setEnabled(
            supports_sub_type(self.insurance_type_input.currentData() or "")
        )
        is_installment = self.payment_type_input.currentText() == PAYMENT_INSTALLMENT
        self.payment_month_input.setVisible(is_installment)
        self.payment_other_input.setVisible(is_installment)

    def _amounts(self) -> dict:
        return {
            "premium_prb": parse_amount(self.premium_prb_input.text(), "เบี้ย พรบ"),
            "discount_prb": parse_amount(self.discount_prb_input.text(), "ส่วนลด พรบ"),
            "premium_vol": parse_amount(self.premium_vol_input.text(), "เบี้ยสมัครใจ"),
            "discount_vol": parse_amount(self.discount_vol_input.text(), "ส่วนลดสมัครใจ"),
        }

    def _update_total(self, _text: str = "") -> None:
        try:
            amounts = self._amounts()
        except ValueError:
            self.total_output.setText("-")
            return
        total = (amounts["premium_prb"] - amounts["discount_prb"]) + (
            amounts["premium_vol"] - amounts["discount_vol"]
        )
        self.total_output.setText(format_currency(total))

    def draft_from_form(self) -> PolicyDraft:
        """Build a draft from the widgets; raises ValueError on unparseable amounts."""
        if self.use_type_input.currentText() == USE_TYPE_OTHER:
            use_type = self.other_use_type_input.text().strip() or USE_TYPE_OTHER
        else:
            use_type = self.use_type_input.currentText()
        if self.doc_address_type_input.currentText() == DOC_ADDRESS_OTHER:
            doc_address = self.doc_address_input.text()
        else:
            doc_address = DOC_ADDRESS_ID_CARD

        return PolicyDraft(
            cust_name=self.cust_name_input.text(),
            member_level=self.member_level_input.currentText(),
            member_code=self.member_code_input.text(),
            phone=self.phone_input.text(),
            address=self.address_input.text(),
            doc_address=doc_address,
            plate=self.plate_input.text(),
            model=self.model_input.text(),
            year=self.year_input.text(),
            engine_no=self.engine_no_input.text(),
            vin=self.vin_input.text(),
            cc=self.cc_input.text(),
            seat=self.seat_input.text(),
            color=self.color_input.text(),
            accessory=self.accessory_input.text(),
            use_type=use_type,
            insurance_type=self.insurance_type_input.currentData() or "",
            policy_sub_type=self.policy_sub_type_input.currentData() or "",
            company_prb=self.company_prb_input.text(),
            company_vol=self.company_vol_input.text(),
            start_prb=self.start_prb_input.text(),
            end_prb=self.end_prb_input.text(),
            start_vol=self.start_vol_input.text(),
            end_vol=self.end_vol_input.text(),
            payment_plan=PaymentPlan(
                kind=self.payment_type_input.currentText(),
                month_option=self.payment_month_input.currentData(),
                other_months=self.payment_other_input.text(),
            ),
            **self._amounts(),
        )

    def populate(self, record: PolicyRecord) -> None:
        self.cust_name_input.setText(record.cust_name)
        self.member_level_input.setCurrentText(record.member_level or NON_MEMBER)
        self.member_code_input.setText(record.member_code)
        self.phone_input.setText(record.phone)
        self.address_input.setText(record.address)
        if record.doc_address and record.doc_address != DOC_ADDRESS_ID_CARD:
            self.doc_address_type_input.setCurrentText(DOC_ADDRESS_OTHER)
            self.doc_address_input.setText(record.doc_address)
        else:
            self.doc_address_type_input.setCurrentText(DOC_ADDRESS_ID_CARD)

        self.plate_input.setText(record.plate)
        self.model_input.setText(record.model)
        self.year_input.setText(record.year)
        self.engine_no_input.setText(record.engine_no)
        self.vin_input.setText(record.vin)
        self.cc_input.setText(record.cc)
        self.seat_input.setText(record.seat)
        self.color_input.setText(record.color)
        self.accessory_input.setText(record.accessory)
        if record.use_type in KNOWN_USE_TYPES:
            self.use_type_input.setCurrentText(record.use_type)
        else:
            self.use_type_input.setCurrentText(USE_TYPE_OTHER)
            self.other_use_type_input.setText(record.use_type)

        index = self.insurance_type_input.findData(record.insurance_type)
        self.insurance_type_input.setCurrentIndex(max(index, 0))
        index = self.policy_sub_type_input.findData(record.policy_sub_type)
        self.policy_sub_type_input.setCurrentIndex(max(index, 0))
        self.company_prb_input.setText(record.company_prb)
        self.premium_prb_input.setText(str(record.premium_prb))
        self.discount_prb_input.setText(str(record.discount_prb))
        self.company_vol_input.setText(record.company_vol)
        self.premium_vol_input.setText(str(record.premium_vol))
        self.discount_vol_input.setText(str(record.discount_vol))
        self.start_prb_input.setText(record.start_prb)
        self.end_prb_input.setText(record.end_prb)
        self.start_vol_input.setText(record.start_vol)
        self.end_vol_input.setText(record.end_vol)

        plan = record.payment_plan
        self.payment_type_input.setCurrentText(PAYMENT_INSTALLMENT if plan.is_installment else PAYMENT_LUMP_SUM)
        index = self.payment_month_input.findData(plan.month_option)
        self.payment_month_input.setCurrentIndex(max(index, 0))
        self.payment_other_input.setText(plan.other_months)

    def _on_accept(self) -> None:
        try:
            self._draft = self.draft_from_form()
        except ValueError as error:
            QMessageBox.critical(self, "ข้อมูลไม่ถูกต้อง", str(error))
            return
        self.accept()

    @property
    def draft(self) -> PolicyDraft | None:
        return self._draft
