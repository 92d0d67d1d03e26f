"""Command surface used by front ends (Qt workers, CLI).

Wraps the stateless helpers (presets, probing, output paths) and the one
stateful piece, the :class:`JobController`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from convertify.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from convertify.models.conversion import (
    AdvancedOptions,
    ConversionRequest,
    StreamSelection,
)
from convertify.models.media import MediaDescription
from convertify.models.preset import Preset, list_presets
from convertify.services.conversion_log import ConversionLog, LogStore
from convertify.services.job_controller import JobController, JobHandle
from convertify.services.media_probe import probe_media
from convertify.services.output_path import OutputPathResolver
from convertify.utils.config import CANCEL_GRACE_SEC, DEFAULT_OUTPUT_EXTENSION

logger = logging.getLogger(__name__)


class ConvertService:
    """Facade over engine checks, probing, path resolution and the job controller."""

    def __init__(
        self,
        runner: FFmpegRunner | None = None,
        log_store: LogStore | None = None,
        grace_period: float = CANCEL_GRACE_SEC,
        last_extension: str = DEFAULT_OUTPUT_EXTENSION,
    ):
        self._runner = runner or get_ffmpeg_runner()
        self._log_store = log_store if log_store is not None else LogStore()
        self._controller = JobController(self._runner, grace_period, self._log_store)
        self._resolver = OutputPathResolver(last_extension)

    @classmethod
    def from_settings(cls, settings) -> "ConvertService":
        """Build a service configured from a SettingsManager."""
        runner = FFmpegRunner(settings.get_ffmpeg_path(), settings.get_ffprobe_path())
        log_dir = settings.get_log_dir() if settings.get_file_logging_enabled() else None
        return cls(
            runner=runner,
            log_store=LogStore(log_dir=log_dir),
            grace_period=settings.get_cancel_grace_period(),
            last_extension=settings.get_last_extension(),
        )

    @property
    def controller(self) -> JobController:
        return self._controller

    @property
    def runner(self) -> FFmpegRunner:
        return self._runner

    # ------------------------------------------------------------ engines

    def check_engine(self) -> tuple[str, str]:
        """Return the (ffmpeg, ffprobe) version lines.

        Raises:
            EngineNotFoundError: If either engine is missing or broken.
        """
        ffmpeg_version = self._runner.ffmpeg_version()
        ffprobe_version = self._runner.ffprobe_version()
        logger.info(f"Engines available: {ffmpeg_version} / {ffprobe_version}")
        return ffmpeg_version, ffprobe_version

    # ------------------------------------------------------------ stateless

    def list_presets(self) -> list[Preset]:
        return list_presets()

    def probe_file(self, path: Path | str) -> MediaDescription:
        """Probe *path*. Raises ProbeError; never touches the running job."""
        return probe_media(path, self._runner)

    def get_output_path(
        self,
        input_path: Path | str,
        preset_id: str | None = None,
        fmt: str | None = None,
        avoid_existing: bool = False,
    ) -> str:
        return self._resolver.resolve(input_path, preset_id, fmt, avoid_existing)

    @property
    def last_extension(self) -> str:
        return self._resolver.last_extension

    # ------------------------------------------------------------ jobs

    def start_convert(
        self,
        input_path: str,
        output_path: str,
        preset_id: str | None = None,
        advanced: AdvancedOptions | None = None,
        stream_selection: StreamSelection | None = None,
        media: MediaDescription | None = None,
    ) -> JobHandle:
        """Start a conversion; progress and the result arrive on the handle.

        *media* should be the description the caller already probed; when
        omitted the input is probed here first (synchronously).

        Raises:
            AlreadyRunningError: If a conversion is running.
            BuildError: If the request is inconsistent.
            ProbeError: If *media* is omitted and the input cannot be probed.
        """
        request = ConversionRequest.from_options(
            input_path, output_path, preset_id, advanced, stream_selection
        )
        if media is None:
            media = self.probe_file(input_path)
        return self._controller.start(request, media)

    def cancel_convert(self) -> None:
        self._controller.cancel()

    def is_converting(self) -> bool:
        return self._controller.is_running()

    def shutdown(self, timeout: float | None = None) -> None:
        self._controller.shutdown(timeout)

    # ------------------------------------------------------------ logs

    def get_logs(self) -> list[ConversionLog]:
        return self._log_store.get_logs()

    def get_last_log(self) -> ConversionLog | None:
        return self._log_store.get_last_log()

    def clear_logs(self) -> None:
        self._log_store.clear_logs()

    def export_logs(self) -> str:
        return self._log_store.export_logs()

    def get_log_file_path(self) -> Path | None:
        return self._log_store.get_log_file_path()
