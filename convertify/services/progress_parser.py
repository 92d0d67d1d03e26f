"""Parse FFmpeg's live status output into progress snapshots.

FFmpeg writes diagnostics to stderr and rewrites a single status line in
place, terminated by ``\\r`` rather than ``\\n``::

    frame=  240 fps=120 q=28.0 size=    1024kB time=00:00:08.00 bitrate=1048.6kbits/s speed=4.01x

The parser accumulates raw chunks, splits them into lines on either
terminator and turns every status line into a :class:`ProgressSnapshot`.
Everything else is handed to ``on_line`` and otherwise ignored.
"""

from __future__ import annotations

import codecs
import re
from typing import Callable, Iterable, Iterator

from convertify.models.conversion import ProgressSnapshot
from convertify.utils.time_utils import ffmpeg_time_to_seconds

_FIELD_RE = re.compile(r"(\w+)=\s*(\S+)")
_LINE_SPLIT_RE = re.compile(r"[\r\n]")
_SIZE_RE = re.compile(r"^([\d.]+)\s*([a-zA-Z]*)$")

_STATUS_KEYS = {"frame", "size", "lsize", "time", "bitrate", "speed"}

# Unit → multiplier to KB
_SIZE_UNITS = {
    "": 1 / 1024,
    "b": 1 / 1024,
    "kb": 1,
    "kib": 1,
    "mb": 1024,
    "mib": 1024,
    "gb": 1024 ** 2,
    "gib": 1024 ** 2,
}


def _available(value: str | None) -> str | None:
    if value is None or value.upper() == "N/A":
        return None
    return value


def parse_size_kb(value: str | None) -> int | None:
    """Parse an FFmpeg size field (``1024kB``, ``2.5MiB``, ``N/A``) into KB."""
    value = _available(value)
    if value is None:
        return None
    match = _SIZE_RE.match(value)
    if not match:
        return None
    factor = _SIZE_UNITS.get(match.group(2).lower())
    if factor is None:
        return None
    try:
        return int(float(match.group(1)) * factor)
    except ValueError:
        return None


def parse_status_fields(line: str) -> dict[str, str] | None:
    """Return the ``key=value`` fields of a status line, or None for other lines.

    A line counts as a status line when it carries at least two of the
    known status keys, so diagnostics that happen to contain one ``=`` are
    not mistaken for progress.
    """
    fields = {key.lower(): value for key, value in _FIELD_RE.findall(line)}
    if len(_STATUS_KEYS.intersection(fields)) < 2:
        return None
    return fields


class ProgressParser:
    """Line-buffered FFmpeg status parser for one job.

    Args:
        duration: Total input duration in seconds, or None if unknown.
            Without it every snapshot reports ``percent=0``.
        on_line: Optional callback for every non-status line.
    """

    def __init__(
        self,
        duration: float | None = None,
        on_line: Callable[[str], None] | None = None,
    ):
        self._duration = duration if duration and duration > 0 else None
        self._on_line = on_line
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._last_percent = 0.0
        self._last_time = 0.0
        self._closed = False

    @property
    def duration(self) -> float | None:
        return self._duration

    # ------------------------------------------------------------ feeding

    def feed(self, chunk: bytes | str) -> list[ProgressSnapshot]:
        """Add a chunk of output; return snapshots for every completed status line."""
        if self._closed:
            raise ValueError("ProgressParser is closed")
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []

        self._buffer += chunk
        *lines, self._buffer = _LINE_SPLIT_RE.split(self._buffer)
        return self._handle_lines(lines)

    def close(self) -> list[ProgressSnapshot]:
        """Flush the trailing partial line. The parser cannot be fed afterwards."""
        if self._closed:
            return []
        self._closed = True
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._handle_lines(_LINE_SPLIT_RE.split(tail))

    def iter_snapshots(self, chunks: Iterable[bytes | str]) -> Iterator[ProgressSnapshot]:
        """Lazily parse *chunks* until the iterable is exhausted (stream closed)."""
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    # ------------------------------------------------------------ parsing

    def _handle_lines(self, lines: list[str]) -> list[ProgressSnapshot]:
        snapshots: list[ProgressSnapshot] = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            snapshot = self.parse_line(line)
            if snapshot is not None:
                snapshots.append(snapshot)
            elif self._on_line is not None:
                self._on_line(line)
        return snapshots

    def parse_line(self, line: str) -> ProgressSnapshot | None:
        """Parse one complete line; None if it is not a status line."""
        fields = parse_status_fields(line)
        if fields is None:
            return None

        time_secs = ffmpeg_time_to_seconds(fields.get("time", "N/A"))
        if time_secs is None or time_secs < self._last_time:
            time_secs = self._last_time
        self._last_time = time_secs

        percent = 0.0
        if self._duration:
            percent = min(100.0, time_secs / self._duration * 100.0)
        percent = max(percent, self._last_percent)
        self._last_percent = percent

        return ProgressSnapshot(
            percent=percent,
            time_secs=time_secs,
            speed=_available(fields.get("speed")),
            bitrate=_available(fields.get("bitrate")),
            size_kb=parse_size_kb(fields.get("size", fields.get("lsize"))),
        )
