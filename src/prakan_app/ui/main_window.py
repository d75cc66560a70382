"""Main GUI window for motor insurance policy records."""

from __future__ import annotations

from html import escape
from pathlib import Path

from PySide6.QtCore import QThreadPool, Qt
from PySide6.QtGui import QTextDocument
from PySide6.QtPrintSupport import QPrintDialog, QPrinter
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from prakan_app.core.errors import CodecError, EmptyExportError, PersistenceWarning
from prakan_app.core.formatting import format_currency, format_date
from prakan_app.models.policy import PolicyRecord
from prakan_app.services.file_codec import FileFormat, suggest_filename
from prakan_app.services.format_mapper import EXPORT_COLUMNS, record_to_row, to_text
from prakan_app.services.policy_service import PolicyService
from prakan_app.services.transfer_service import DecodedFile, TransferService
from prakan_app.services.view_pipeline import ViewPage, ViewPipeline
from prakan_app.ui.policy_form import PolicyFormDialog
from prakan_app.ui.tasks import DecodeImportFileTask, WriteExportFileTask

TABLE_COLUMNS = [
    ("cust_name", "ชื่อลูกค้า"),
    ("phone", "เบอร์โทร"),
    ("plate", "ทะเบียนรถ"),
    ("model", "ยี่ห้อ/รุ่น"),
    ("insurance_type", "ประเภทประกัน"),
    ("total_amount", "ยอดรวม"),
    ("end_vol", "สมัครใจ หมด"),
    ("created_at", "วันที่บันทึก"),
]

IMPORT_FILTER = "Data Files (*.xlsx *.csv *.json)"
EXPORT_FILTERS = {
    "Excel (*.xlsx)": FileFormat.XLSX,
    "CSV (*.csv)": FileFormat.CSV,
    "JSON (*.json)": FileFormat.JSON,
}


def _cell_text(record: PolicyRecord, name: str) -> str:
    value = getattr(record, name)
    if name == "total_amount":
        return format_currency(value)
    if name in ("end_vol", "created_at"):
        return format_date(value)
    return str(value)


class MainWindow(QMainWindow):
    """Shows one page of the derived view; every action addresses records by id."""

    def __init__(
        self,
        policy_service: PolicyService,
        transfer_service: TransferService,
        view: ViewPipeline,
        page_size_options: tuple[int, ...] = (10, 25, 50, 100),
    ):
        super().__init__()
        self.policy_service = policy_service
        self.transfer_service = transfer_service
        self.view = view
        self.page_size_options = page_size_options
        self.thread_pool = QThreadPool.globalInstance()

        self.setWindowTitle("ระบบจัดการข้อมูลประกันรถยนต์")
        self.resize(1300, 820)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addWidget(self._build_stats_strip())
        layout.addLayout(self._build_toolbar())
        layout.addWidget(self._build_table())
        layout.addLayout(self._build_pagination())
        self.setCentralWidget(central)

        self.render_view(self.view.current)

    def _build_stats_strip(self) -> QFrame:
        frame = QFrame()
        frame.setFrameShape(QFrame.Shape.StyledPanel)
        row = QHBoxLayout(frame)
        self.record_count_label = QLabel()
        self.total_amount_label = QLabel()
        row.addWidget(self.record_count_label)
        row.addStretch(1)
        row.addWidget(self.total_amount_label)
        return frame

    def _build_toolbar(self) -> QHBoxLayout:
        row = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("ค้นหา ชื่อ, เบอร์โทร, ทะเบียน, รุ่น, บริษัท...")
        self.search_input.textChanged.connect(self._on_search_changed)
        row.addWidget(self.search_input, 1)

        for text, handler in [
            ("เพิ่มข้อมูล", self.add_policy),
            ("แก้ไข", self.edit_policy),
            ("ดูรายละเอียด", self.show_policy_detail),
            ("ลบ", self.delete_policy),
            ("นำเข้า", self.import_file),
            ("ส่งออก", self.export_file),
            ("พิมพ์", self.print_table),
            ("ข้อมูลตัวอย่าง", self.generate_sample_data),
            ("ล้างข้อมูลทั้งหมด", self.clear_all_data),
        ]:
            button = QPushButton(text)
            button.clicked.connect(handler)
            row.addWidget(button)
        return row

    def _build_table(self) -> QTableWidget:
        self.table = QTableWidget(0, len(TABLE_COLUMNS))
        self.table.setHorizontalHeaderLabels([label for _, label in TABLE_COLUMNS])
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.table.horizontalHeader().sectionClicked.connect(self._on_header_clicked)
        self.table.cellDoubleClicked.connect(lambda _row, _column: self.show_policy_detail())
        return self.table

    def _build_pagination(self) -> QHBoxLayout:
        row = QHBoxLayout()
        self.range_label = QLabel()
        row.addWidget(self.range_label)
        row.addStretch(1)

        row.addWidget(QLabel("แสดง"))
        self.page_size_input = QComboBox()
        for option in self.page_size_options:
            self.page_size_input.addItem(str(option), option)
        index = self.page_size_input.findData(self.view.state.page_size)
        self.page_size_input.setCurrentIndex(max(index, 0))
        self.page_size_input.currentIndexChanged.connect(self._on_page_size_changed)
        row.addWidget(self.page_size_input)

        self.prev_button = QPushButton("ก่อนหน้า")
        self.prev_button.clicked.connect(lambda: self.go_to_page(self.view.current.page - 1))
        row.addWidget(self.prev_button)
        self.page_buttons_row = QHBoxLayout()
        row.addLayout(self.page_buttons_row)
        self.next_button = QPushButton("ถัดไป")
        self.next_button.clicked.connect(lambda: self.go_to_page(self.view.current.page + 1))
        row.addWidget(self.next_button)
        return row

    def _selected_record_id(self) -> str:
        row = self.table.currentRow()
        item = self.table.item(row, 0) if row >= 0 else None
        if item is None:
            raise ValueError("กรุณาเลือกรายการในตาราง")
        return item.data(Qt.ItemDataRole.UserRole)

    def render_view(self, page: ViewPage) -> None:
        self.table.setRowCount(len(page.rows))
        for row_index, record in enumerate(page.rows):
            for column_index, (name, _label) in enumerate(TABLE_COLUMNS):
                item = QTableWidgetItem(_cell_text(record, name))
                if column_index == 0:
                    item.setData(Qt.ItemDataRole.UserRole, record.id)
                self.table.setItem(row_index, column_index, item)

        sort = self.view.state.sort
        for column_index, (name, label) in enumerate(TABLE_COLUMNS):
            marker = ""
            if sort.column == name:
                marker = " ▼" if sort.descending else " ▲"
            self.table.horizontalHeaderItem(column_index).setText(label + marker)

        self.range_label.setText(
            f"แสดง {page.first_visible_index}-{page.last_visible_index} จาก {page.total_filtered} รายการ"
        )
        self.prev_button.setEnabled(page.has_previous)
        self.next_button.setEnabled(page.has_next)
        self._render_page_buttons(page)
        self._render_summary()

    def _render_page_buttons(self, page: ViewPage) -> None:
        while self.page_buttons_row.count():
            widget = self.page_buttons_row.takeAt(0).widget()
            if widget is not None:
                widget.deleteLater()
        for number in page.page_window():
            button = QPushButton(str(number))
            button.setCheckable(True)
            button.setChecked(number == page.page)
            button.clicked.connect(lambda _checked=False, target=number: self.go_to_page(target))
            self.page_buttons_row.addWidget(button)

    def _render_summary(self) -> None:
        summary = self.policy_service.summary()
        self.record_count_label.setText(f"จำนวนกรมธรรม์: {summary.record_count} รายการ")
        self.total_amount_label.setText(f"ยอดรวมทั้งหมด: {format_currency(summary.total_amount)} บาท")

    def _after_mutation(self) -> None:
        self.render_view(self.view.current)
        self._show_persistence_warnings(self.policy_service.drain_warnings())

    def _show_persistence_warnings(self, warnings: list[PersistenceWarning]) -> None:
        if warnings:
            QMessageBox.warning(
                self,
                "บันทึกข้อมูลไม่สำเร็จ",
                "\n".join(str(warning) for warning in warnings),
            )

    def _on_search_changed(self, text: str) -> None:
        self.render_view(self.view.set_search(text))

    def _on_header_clicked(self, column_index: int) -> None:
        name, _label = TABLE_COLUMNS[column_index]
        self.render_view(self.view.toggle_sort(name))

    def _on_page_size_changed(self, _index: int) -> None:
        self.render_view(self.view.set_page_size(self.page_size_input.currentData()))

    def go_to_page(self, page: int) -> None:
        self.render_view(self.view.go_to_page(page))

    def add_policy(self) -> None:
        dialog = PolicyFormDialog(self)
        while dialog.exec() and dialog.draft is not None:
            try:
                self.policy_service.create_policy(dialog.draft)
            except ValueError as error:
                QMessageBox.critical(self, "ข้อมูลไม่ถูกต้อง", str(error))
                continue
            self.statusBar().showMessage("บันทึกข้อมูลเรียบร้อย", 3000)
            self._after_mutation()
            return

    def edit_policy(self) -> None:
        try:
            record_id = self._selected_record_id()
            record = self.policy_service.get_policy(record_id)
        except (ValueError, LookupError) as error:
            QMessageBox.critical(self, "ข้อผิดพลาด", str(error))
            return
        dialog = PolicyFormDialog(self, record)
        while dialog.exec() and dialog.draft is not None:
            try:
                self.policy_service.update_policy(record_id, dialog.draft)
            except ValueError as error:
                QMessageBox.critical(self, "ข้อมูลไม่ถูกต้อง", str(error))
                continue
            except LookupError as error:
                QMessageBox.critical(self, "ข้อผิดพลาด", str(error))
                return
            self.statusBar().showMessage("แก้ไขข้อมูลเรียบร้อย", 3000)
            self._after_mutation()
            return

    def show_policy_detail(self) -> None:
        try:
            record = self.policy_service.get_policy(self._selected_record_id())
        except (ValueError, LookupError) as error:
            QMessageBox.critical(self, "ข้อผิดพลาด", str(error))
            return
        row = record_to_row(record)
        lines = [f"{label}: {to_text(row[label]) or '-'}" for label, _field in EXPORT_COLUMNS]
        QMessageBox.information(self, f"รายละเอียด: {record.cust_name}", "\n".join(lines))

    def delete_policy(self) -> None:
        try:
            record_id = self._selected_record_id()
            record = self.policy_service.get_policy(record_id)
            confirm = QMessageBox.question(
                self,
                "ยืนยันการลบ",
                f"ต้องการลบข้อมูลของ {record.cust_name} ({record.plate}) หรือไม่?",
            )
            if confirm != QMessageBox.StandardButton.Yes:
                return
            self.policy_service.delete_policy(record_id)
        except (ValueError, LookupError) as error:
            QMessageBox.critical(self, "ข้อผิดพลาด", str(error))
            return
        self.statusBar().showMessage("ลบข้อมูลเรียบร้อย", 3000)
        self._after_mutation()

    def clear_all_data(self) -> None:
        confirm = QMessageBox.question(
            self,
            "ยืนยันการล้างข้อมูล",
            "ต้องการลบข้อมูลทั้งหมดหรือไม่? การดำเนินการนี้ไม่สามารถย้อนกลับได้",
        )
        if confirm != QMessageBox.StandardButton.Yes:
            return
        removed = self.policy_service.clear_all()
        self.statusBar().showMessage(f"ลบข้อมูลทั้งหมด {removed} รายการ", 3000)
        self._after_mutation()

    def generate_sample_data(self) -> None:
        created = self.policy_service.generate_sample_policies()
        QMessageBox.information(self, "สำเร็จ", f"สร้างข้อมูลตัวอย่าง {len(created)} รายการ")
        self._after_mutation()

    def import_file(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "เลือกไฟล์นำเข้า", "", IMPORT_FILTER)
        if not file_path:
            return

        task = DecodeImportFileTask(self.transfer_service, file_path)
        task.signals.done.connect(self._insert_decoded_rows)
        task.signals.error.connect(
            lambda message: QMessageBox.critical(self, "นำเข้าไม่สำเร็จ", message)
        )
        self.thread_pool.start(task)

    def _insert_decoded_rows(self, decoded: DecodedFile) -> None:
        confirm = QMessageBox.question(
            self,
            "ยืนยันการนำเข้า",
            f"พบข้อมูล {len(decoded.rows)} รายการ ต้องการนำเข้าหรือไม่?",
        )
        if confirm != QMessageBox.StandardButton.Yes:
            return

        result = self.transfer_service.insert_rows(decoded)
        message = f"นำเข้าสำเร็จ: {result.created_count} รายการ\nข้าม: {result.skipped_count} รายการ"
        if result.error_messages:
            message += "\n\nรายการที่ข้าม (สูงสุด 10 รายการ)\n" + "\n".join(result.error_messages)
        QMessageBox.information(self, "ผลการนำเข้า", message)
        self._after_mutation()

    def export_file(self) -> None:
        file_path, selected_filter = QFileDialog.getSaveFileName(
            self,
            "ส่งออกข้อมูล",
            suggest_filename(FileFormat.XLSX),
            ";;".join(EXPORT_FILTERS),
        )
        if not file_path:
            return

        try:
            fmt = FileFormat.from_filename(file_path)
        except CodecError:
            fmt = EXPORT_FILTERS.get(selected_filter, FileFormat.XLSX)
            file_path = str(Path(file_path).with_suffix(f".{fmt.value}"))
        try:
            payload = self.transfer_service.export_bytes(fmt)
        except EmptyExportError as error:
            QMessageBox.information(self, "แจ้งเตือน", str(error))
            return

        task = WriteExportFileTask(payload.data, file_path)
        task.signals.done.connect(
            lambda path: QMessageBox.information(
                self, "สำเร็จ", f"ส่งออก {payload.record_count} รายการ: {path}"
            )
        )
        task.signals.error.connect(
            lambda message: QMessageBox.critical(self, "ส่งออกไม่สำเร็จ", message)
        )
        self.thread_pool.start(task)

    def print_table(self) -> None:
        """Print the rows currently shown, in their on-screen order."""
        page = self.view.current
        if not page.rows:
            QMessageBox.information(self, "แจ้งเตือน", "ไม่มีข้อมูลให้พิมพ์")
            return

        printer = QPrinter(QPrinter.PrinterMode.HighResolution)
        dialog = QPrintDialog(printer, self)
        if not dialog.exec():
            return

        header = "".join(f"<th>{escape(label)}</th>" for _, label in TABLE_COLUMNS)
        body = "".join(
            "<tr>"
            + "".join(f"<td>{escape(_cell_text(record, name))}</td>" for name, _ in TABLE_COLUMNS)
            + "</tr>"
            for record in page.rows
        )
        document = QTextDocument()
        document.setHtml(
            f"<h3>{escape(self.windowTitle())}</h3>"
            f"<p>{escape(self.range_label.text())}</p>"
            f'<table border="1" cellspacing="0" cellpadding="4"><tr>{header}</tr>{body}</table>'
        )
        document.print_(printer)
