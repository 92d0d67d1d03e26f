"""Time conversion utilities."""

from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=4096)
def seconds_to_display(seconds: float) -> str:
    """Convert seconds to display string 'HH:MM:SS'."""
    if seconds < 0:
        seconds = 0
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def ffmpeg_time_to_seconds(text: str) -> float | None:
    """Parse an FFmpeg timestamp 'HH:MM:SS.ms' → seconds.

    FFmpeg prints ``N/A`` before the first frame is muxed and may print a
    slightly negative time (``-00:00:00.02``) at the start of a stream; the
    former yields ``None`` and the latter is clamped to zero.

    Example:
        >>> ffmpeg_time_to_seconds("01:02:03.50")
        3723.5
    """
    text = text.strip()
    if not text or text.upper() == "N/A":
        return None

    negative = text.startswith("-")
    parts = text.lstrip("-").split(":")
    if len(parts) > 3:
        return None
    try:
        total = 0.0
        for part in parts:
            total = total * 60 + float(part)
    except ValueError:
        return None

    return 0.0 if negative else total
