"""Convertify command-line entry point."""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QObject, QThread, QTimer, Slot

from convertify.models.conversion import AdvancedOptions, JobResult, ProgressSnapshot, StreamSelection
from convertify.models.preset import find_preset, list_presets
from convertify.services.convert_service import ConvertService
from convertify.services.errors import ConvertifyError
from convertify.services.settings_manager import SettingsManager
from convertify.utils.config import APP_NAME, APP_VERSION, ORG_NAME
from convertify.utils.time_utils import seconds_to_display
from convertify.workers.convert_worker import ConvertWorker

logger = logging.getLogger("convertify")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="convertify", description="Convert media files with FFmpeg.")
    parser.add_argument("input", nargs="?", help="input media file")
    parser.add_argument("-o", "--output", help="output path (default: derived from the input)")
    parser.add_argument("-p", "--preset", help="preset id (see --list-presets)")
    parser.add_argument("-f", "--format", dest="fmt", help="container format (advanced mode)")
    parser.add_argument("--vcodec", help="video codec, 'copy' or 'none' (advanced mode)")
    parser.add_argument("--acodec", help="audio codec, 'copy' or 'none' (advanced mode)")
    parser.add_argument("--extra", help="extra FFmpeg arguments, appended verbatim")
    parser.add_argument("--no-video", action="store_true", help="drop video streams")
    parser.add_argument("--no-audio", action="store_true", help="drop audio streams")
    parser.add_argument("--no-subtitles", action="store_true", help="drop subtitle streams")
    parser.add_argument("--list-presets", action="store_true", help="list presets and exit")
    parser.add_argument("--probe", action="store_true", help="print stream information and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def _print_presets() -> None:
    for preset in list_presets():
        print(f"{preset.id:<10} {preset.category.value:<6} .{preset.extension:<5} {preset.name}")


def _print_media(media) -> None:
    duration = seconds_to_display(media.duration) if media.duration is not None else "unknown"
    print(f"{media.filename}: {media.format_long_name or media.format_name} ({duration})")
    for stream in media.streams:
        details = [stream.codec_name or "?"]
        if stream.dimensions:
            details.append("{}x{}".format(*stream.dimensions))
        if stream.frame_rate:
            details.append(f"{stream.frame_rate} fps")
        if stream.sample_rate:
            details.append(f"{stream.sample_rate} Hz")
        if stream.channel_layout:
            details.append(stream.channel_layout)
        if stream.language:
            details.append(f"[{stream.language}]")
        print(f"  #{stream.index} {stream.kind.value}: {', '.join(details)}")


def _default_output_path(
    service: ConvertService,
    input_path: str,
    preset_id: str | None,
    advanced: AdvancedOptions | None,
) -> str:
    """Output path next to the input that never replaces an existing file."""
    return service.get_output_path(
        input_path,
        preset_id=preset_id,
        fmt=advanced.format if advanced else None,
        avoid_existing=True,
    )


class _CliSession(QObject):
    """Receives worker signals on the main thread and quits the app."""

    def __init__(self, app: QCoreApplication):
        super().__init__()
        self._app = app

    @Slot(object)
    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        line = f"\r{snapshot.percent:5.1f}%  {seconds_to_display(snapshot.time_secs)}"
        if snapshot.speed:
            line += f"  {snapshot.speed}"
        print(line, end="", flush=True)

    @Slot(str)
    def on_status(self, message: str) -> None:
        logger.info(message)

    @Slot(object)
    def on_finished(self, result: JobResult) -> None:
        print()
        print(f"Done in {result.duration_secs:.1f}s: {result.output_path}")
        self._app.exit(EXIT_OK)

    @Slot(str)
    def on_error(self, message: str) -> None:
        print()
        print(f"Conversion failed: {message}", file=sys.stderr)
        self._app.exit(EXIT_FAILED)

    @Slot(object)
    def on_cancelled(self, result: JobResult) -> None:
        print()
        print("Conversion cancelled", file=sys.stderr)
        self._app.exit(EXIT_CANCELLED)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        _print_presets()
        return EXIT_OK
    if not args.input:
        print("error: an input file is required", file=sys.stderr)
        return EXIT_FAILED

    QCoreApplication.setOrganizationName(ORG_NAME)
    QCoreApplication.setApplicationName(APP_NAME)
    app = QCoreApplication(sys.argv[:1])

    settings = SettingsManager()
    service = ConvertService.from_settings(settings)

    try:
        service.check_engine()
        media = service.probe_file(args.input)
    except ConvertifyError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILED

    if args.probe:
        _print_media(media)
        return EXIT_OK

    advanced = None
    preset_id = args.preset
    if preset_id is None:
        advanced = AdvancedOptions(args.fmt, args.vcodec, args.acodec, args.extra)
        if advanced.is_empty():
            preset_id = settings.get_last_preset() or "mp4_h264"
            advanced = None
    elif any((args.fmt, args.vcodec, args.acodec, args.extra)):
        print("error: --preset cannot be combined with advanced options", file=sys.stderr)
        return EXIT_FAILED
    elif find_preset(preset_id) is None:
        print(f"error: unknown preset '{preset_id}'", file=sys.stderr)
        return EXIT_FAILED

    output = args.output or _default_output_path(service, args.input, preset_id, advanced)
    settings.set_last_extension(service.last_extension)
    if preset_id:
        settings.set_last_preset(preset_id)

    streams = StreamSelection(
        include_video=not args.no_video,
        include_audio=not args.no_audio,
        include_subtitles=not args.no_subtitles,
    )

    session = _CliSession(app)
    thread = QThread()
    worker = ConvertWorker(service, args.input, output, preset_id, advanced, streams, media)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.status_update.connect(session.on_status)
    worker.progress.connect(session.on_progress)
    worker.finished.connect(session.on_finished)
    worker.error.connect(session.on_error)
    worker.cancelled.connect(session.on_cancelled)
    for terminal in (worker.finished, worker.error, worker.cancelled):
        terminal.connect(thread.quit)

    # Ctrl+C: Python 시그널 핸들러가 실행되도록 이벤트 루프를 주기적으로 깨운다
    signal.signal(signal.SIGINT, lambda *_: worker.cancel())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    thread.start()
    code = app.exec()
    thread.wait()
    service.shutdown(timeout=5)
    settings.sync()
    return code


if __name__ == "__main__":
    sys.exit(main())
