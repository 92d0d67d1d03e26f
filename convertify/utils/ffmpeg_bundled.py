"""
Bundled FFmpeg using imageio-ffmpeg.
Automatically downloads FFmpeg binaries if not found.
"""
from __future__ import annotations

import shutil
import sys
from pathlib import Path


def get_bundled_ffmpeg() -> str:
    """
    Get FFmpeg executable path.
    Uses imageio-ffmpeg to auto-download if not found.

    Returns:
        Path to ffmpeg executable

    Raises:
        ImportError: If imageio-ffmpeg is not installed
        RuntimeError: If FFmpeg cannot be obtained
    """
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except ImportError:
        raise ImportError(
            "imageio-ffmpeg is not installed.\n"
            "Install with: pip install imageio-ffmpeg"
        )
    except Exception as e:
        raise RuntimeError(f"Failed to get bundled FFmpeg: {e}")


def get_bundled_ffprobe() -> str | None:
    """
    Get FFprobe executable path.

    imageio-ffmpeg only ships ffmpeg, so this looks next to the bundled
    binary first and falls back to whatever ffprobe is on PATH.
    """
    try:
        ffmpeg_dir = Path(get_bundled_ffmpeg()).parent
    except (ImportError, RuntimeError):
        return shutil.which("ffprobe")

    name = "ffprobe.exe" if sys.platform == "win32" else "ffprobe"
    ffprobe_path = ffmpeg_dir / name
    if ffprobe_path.exists():
        return str(ffprobe_path)

    return shutil.which("ffprobe")
