"""FFmpeg utilities for finding ffmpeg and ffprobe executables."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path


def _exe_name(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def find_ffmpeg(configured: str | None = None) -> str | None:
    """
    Find ffmpeg executable.

    Search order:
    1. Explicitly configured path (user preference)
    2. Platform default path (config.FFMPEG_PATH)
    3. System PATH (ffmpeg command)
    4. Bundled FFmpeg (imageio-ffmpeg) - auto-download if needed

    Returns:
        Path to ffmpeg or None if not found
    """
    if configured and Path(configured).is_file():
        return configured

    from .config import FFMPEG_PATH
    if Path(FFMPEG_PATH).is_file():
        return FFMPEG_PATH

    system_ffmpeg = shutil.which("ffmpeg")
    if system_ffmpeg:
        return system_ffmpeg

    try:
        from .ffmpeg_bundled import get_bundled_ffmpeg
        return get_bundled_ffmpeg()
    except (ImportError, RuntimeError):
        pass

    return None


def find_ffprobe(configured: str | None = None, ffmpeg_path: str | None = None) -> str | None:
    """
    Find ffprobe executable (usually alongside ffmpeg).

    Returns:
        Path to ffprobe or None if not found
    """
    if configured and Path(configured).is_file():
        return configured

    ffprobe = shutil.which("ffprobe")
    if ffprobe:
        return ffprobe

    # Try to find it alongside ffmpeg
    ffmpeg_path = ffmpeg_path or find_ffmpeg()
    if ffmpeg_path:
        candidate = Path(ffmpeg_path).parent / _exe_name("ffprobe")
        if candidate.is_file():
            return str(candidate)

    from .ffmpeg_bundled import get_bundled_ffprobe
    return get_bundled_ffprobe()
