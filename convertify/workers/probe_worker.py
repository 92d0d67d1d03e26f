"""Background worker for media probing."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, Signal

from convertify.services.convert_service import ConvertService


class ProbeWorker(QObject):
    """Probes a media file in a background thread.

    Signals:
        finished(MediaDescription): Emitted on success.
        error(str): Emitted with the probe failure reason.
    """

    finished = Signal(object)
    error = Signal(str)

    def __init__(self, service: ConvertService, path: Path | str):
        super().__init__()
        self._service = service
        self._path = path

    def run(self) -> None:
        try:
            self.finished.emit(self._service.probe_file(self._path))
        except Exception as e:
            self.error.emit(str(e))
