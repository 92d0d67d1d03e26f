"""Probe media file structure using ffprobe."""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from convertify.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from convertify.models.media import MediaDescription, MediaStream, StreamKind
from convertify.services.errors import EngineNotFoundError, ProbeError
from convertify.utils.config import PROBE_TIMEOUT_SEC

logger = logging.getLogger(__name__)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _opt_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_float(value: Any) -> float | None:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if result == result else None  # NaN


def _frame_rate(value: Any) -> str | None:
    rate = _opt_str(value)
    if rate is None or rate.startswith("0/"):
        return None
    return rate


def _parse_stream(raw: dict[str, Any], position: int) -> MediaStream:
    tags = raw.get("tags") or {}
    index = _opt_int(raw.get("index"))
    return MediaStream(
        index=position if index is None else index,
        kind=StreamKind.from_codec_type(raw.get("codec_type")),
        codec_name=_opt_str(raw.get("codec_name")),
        codec_long_name=_opt_str(raw.get("codec_long_name")),
        width=_opt_int(raw.get("width")),
        height=_opt_int(raw.get("height")),
        frame_rate=_frame_rate(raw.get("r_frame_rate")),
        pix_fmt=_opt_str(raw.get("pix_fmt")),
        sample_rate=_opt_int(raw.get("sample_rate")),
        channels=_opt_int(raw.get("channels")),
        channel_layout=_opt_str(raw.get("channel_layout")),
        language=_opt_str(tags.get("language")),
        title=_opt_str(tags.get("title")),
    )


def parse_probe_output(data: Any, path: Path | str) -> MediaDescription:
    """Turn decoded ``ffprobe -print_format json`` output into a description.

    Optional fields that ffprobe omits (duration, bit rate, frame rate,
    tags) become ``None``; only a missing ``format`` section is an error.

    Raises:
        ProbeError: If *data* is not a probe result.
    """
    if not isinstance(data, dict):
        raise ProbeError("Failed to parse ffprobe output: not a JSON object")
    fmt = data.get("format")
    if not isinstance(fmt, dict):
        raise ProbeError("Failed to parse ffprobe output: missing format info")

    raw_streams = data.get("streams") or []
    if not isinstance(raw_streams, list):
        raise ProbeError("Failed to parse ffprobe output: streams is not a list")

    abs_path = Path(path).absolute()
    return MediaDescription(
        path=str(abs_path),
        filename=abs_path.name,
        format_name=_opt_str(fmt.get("format_name")) or "",
        format_long_name=_opt_str(fmt.get("format_long_name")) or "",
        duration=_opt_float(fmt.get("duration")),
        size=_opt_int(fmt.get("size")),
        bit_rate=_opt_int(fmt.get("bit_rate")),
        streams=tuple(
            _parse_stream(raw, i) for i, raw in enumerate(raw_streams) if isinstance(raw, dict)
        ),
    )


def probe_media(path: Path | str, runner: FFmpegRunner | None = None) -> MediaDescription:
    """Probe *path* with ffprobe and return its structure.

    Spawns one short-lived ffprobe process per call.

    Raises:
        ProbeError: If the file is missing or unreadable, ffprobe is missing
            or fails, or its output cannot be parsed.
    """
    media_path = Path(path)
    if not media_path.exists():
        raise ProbeError(f"File not found: {media_path}")
    if not media_path.is_file():
        raise ProbeError(f"Not a file: {media_path}")
    if not os.access(media_path, os.R_OK):
        raise ProbeError(f"File is not readable: {media_path}")

    runner = runner or get_ffmpeg_runner()
    try:
        result = runner.run_ffprobe(
            [
                "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                str(media_path.absolute()),
            ],
            encoding="utf-8",
            errors="replace",
            timeout=PROBE_TIMEOUT_SEC,
        )
    except EngineNotFoundError as e:
        raise ProbeError(str(e)) from e
    except subprocess.TimeoutExpired as e:
        raise ProbeError(f"ffprobe timed out after {PROBE_TIMEOUT_SEC}s") from e
    except OSError as e:
        raise ProbeError(f"Failed to execute ffprobe: {e}") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ProbeError(stderr[:500] or f"ffprobe exited with code {result.returncode}")

    try:
        data = json.loads(result.stdout or "")
    except json.JSONDecodeError as e:
        raise ProbeError(f"Failed to parse ffprobe output: {e}") from e

    media = parse_probe_output(data, media_path)
    logger.info(
        f"Probed {media.filename}: format={media.format_name} "
        f"duration={media.duration} streams={len(media.streams)}"
    )
    return media
