"""Background worker tasks used by the main GUI window."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, QRunnable, Signal

if TYPE_CHECKING:
    from prakan_app.services.transfer_service import TransferService


class DecodeSignals(QObject):
    """Signals for background file decoding."""

    done = Signal(object)
    error = Signal(str)


class WriteSignals(QObject):
    """Signals for background file writes."""

    done = Signal(str)
    error = Signal(str)


class DecodeImportFileTask(QRunnable):
    """Read and parse an import file off the UI thread.

    Only decoding happens here; the bulk insert runs on the UI thread when
    `done` is delivered, so the store is never mutated from a worker.
    """

    def __init__(self, transfer_service: TransferService, file_path: str):
        super().__init__()
        self.transfer_service = transfer_service
        self.file_path = file_path
        self.signals = DecodeSignals()

    def run(self) -> None:
        try:
            decoded = self.transfer_service.decode_file(self.file_path)
            self.signals.done.emit(decoded)
        except Exception as error:  # pylint: disable=broad-except
            # Worker boundary: convert any failure to a user-visible message.
            self.signals.error.emit(str(error))


class WriteExportFileTask(QRunnable):
    """Write already-encoded export bytes to disk."""

    def __init__(self, data: bytes, file_path: str):
        super().__init__()
        self.data = data
        self.file_path = file_path
        self.signals = WriteSignals()

    def run(self) -> None:
        try:
            Path(self.file_path).write_bytes(self.data)
            self.signals.done.emit(self.file_path)
        except OSError as error:
            self.signals.error.emit(str(error))
