"""Background worker for a media conversion."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from convertify.models.conversion import (
    AdvancedOptions,
    JobResult,
    JobState,
    ProgressSnapshot,
    StreamSelection,
)
from convertify.models.media import MediaDescription
from convertify.services.convert_service import ConvertService
from convertify.services.job_controller import JobHandle

logger = logging.getLogger(__name__)


class ConvertWorker(QObject):
    """Runs one conversion in a background thread.

    Exactly one of ``finished`` / ``error`` / ``cancelled`` is emitted per run.

    Signals:
        status_update(str): Status message for UI display.
        progress(ProgressSnapshot): Parsed FFmpeg progress.
        finished(JobResult): Emitted on success.
        error(str): Emitted with error message on failure.
        cancelled(JobResult): Emitted when the user cancelled.
    """

    status_update = Signal(str)
    progress = Signal(object)
    finished = Signal(object)
    error = Signal(str)
    cancelled = Signal(object)

    def __init__(
        self,
        service: ConvertService,
        input_path: str,
        output_path: str,
        preset_id: str | None = None,
        advanced: AdvancedOptions | None = None,
        stream_selection: StreamSelection | None = None,
        media: MediaDescription | None = None,
    ):
        super().__init__()
        self._service = service
        self._input_path = input_path
        self._output_path = output_path
        self._preset_id = preset_id
        self._advanced = advanced
        self._stream_selection = stream_selection
        self._media = media
        self._handle: JobHandle | None = None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        handle = self._handle
        if handle is not None:
            handle.cancel()

    def run(self) -> None:
        """Probe (if needed), start the job and relay its events as signals."""
        try:
            media = self._media
            if media is None:
                self.status_update.emit(f"Probing {Path(self._input_path).name}...")
                media = self._service.probe_file(self._input_path)

            if self._cancelled:
                self.cancelled.emit(JobResult(JobState.CANCELLED, self._output_path, 0.0, "Cancelled"))
                return

            self.status_update.emit(f"Converting {media.filename}...")
            self._handle = self._service.start_convert(
                self._input_path,
                self._output_path,
                preset_id=self._preset_id,
                advanced=self._advanced,
                stream_selection=self._stream_selection,
                media=media,
            )
            if self._cancelled:
                self._handle.cancel()

            result: JobResult | None = None
            for event in self._handle.events():
                if isinstance(event, ProgressSnapshot):
                    self.progress.emit(event)
                else:
                    result = event

            if result is None or result.state is JobState.FAILED:
                self.error.emit(result.message if result and result.message else "Conversion failed")
            elif result.cancelled:
                self.cancelled.emit(result)
            else:
                self.finished.emit(result)

        except Exception as e:
            logger.exception(f"Error in ConvertWorker: {e}")
            self.error.emit(str(e))
