"""Utility for logging FFmpeg output to a file."""

import logging
from pathlib import Path

from convertify.utils.config import LOG_DIR


def get_ffmpeg_log_path() -> Path:
    """Return the path to the FFmpeg log file."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR / "ffmpeg.log"


# Setup a specific logger for FFmpeg
_logger = logging.getLogger("ffmpeg_output")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False


def _ensure_handler() -> None:
    # File handler is attached on first use so importing never touches $HOME
    if _logger.handlers:
        return
    try:
        fh = logging.FileHandler(get_ffmpeg_log_path(), encoding="utf-8")
    except OSError:
        _logger.addHandler(logging.NullHandler())
        return
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    _logger.addHandler(fh)


def log_ffmpeg_command(command: str) -> None:
    """Log the FFmpeg command being executed."""
    _ensure_handler()
    _logger.info(f"Executing: {command}")


def log_ffmpeg_line(line: str) -> None:
    """Log a single line of FFmpeg output."""
    _ensure_handler()
    _logger.debug(line.rstrip())
