"""Application entry point."""

from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication, QMessageBox

from prakan_app.core.container import build_container
from prakan_app.ui.main_window import MainWindow


def run() -> None:
    """Launch the GUI application."""
    container = build_container()

    app = QApplication(sys.argv)
    window = MainWindow(
        container.policy_service,
        container.transfer_service,
        container.view,
        container.config.view.page_size_options,
    )
    window.show()
    if container.load_warnings:
        QMessageBox.warning(
            window,
            "โหลดข้อมูลไม่สมบูรณ์",
            "\n".join(str(warning) for warning in container.load_warnings),
        )
    sys.exit(app.exec())


if __name__ == "__main__":
    run()
