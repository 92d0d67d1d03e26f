"""Probed media file description (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class StreamKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    DATA = "data"
    ATTACHMENT = "attachment"
    UNKNOWN = "unknown"

    @classmethod
    def from_codec_type(cls, codec_type: str | None) -> "StreamKind":
        """Map an ffprobe ``codec_type`` to a kind, ``UNKNOWN`` for anything else."""
        try:
            return cls((codec_type or "").lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class MediaStream:
    """One elementary stream inside a container."""

    index: int
    kind: StreamKind
    codec_name: str | None = None
    codec_long_name: str | None = None
    # Video
    width: int | None = None
    height: int | None = None
    frame_rate: str | None = None   # rational, e.g. "30000/1001"
    pix_fmt: str | None = None
    # Audio
    sample_rate: int | None = None
    channels: int | None = None
    channel_layout: str | None = None
    # Tags
    language: str | None = None
    title: str | None = None

    @property
    def dimensions(self) -> tuple[int, int] | None:
        if self.width is None or self.height is None:
            return None
        return self.width, self.height


@dataclass(frozen=True)
class MediaDescription:
    """Structure of one probed media file.

    ``has_video`` / ``has_audio`` / ``has_subtitles`` are derived from
    ``streams`` when the object is created and cannot be passed in.
    """

    path: str
    filename: str
    format_name: str = ""
    format_long_name: str = ""
    duration: float | None = None   # seconds
    size: int | None = None         # bytes
    bit_rate: int | None = None     # bits/s
    streams: tuple[MediaStream, ...] = ()
    has_video: bool = field(init=False)
    has_audio: bool = field(init=False)
    has_subtitles: bool = field(init=False)

    def __post_init__(self) -> None:
        streams = tuple(self.streams)
        kinds = {s.kind for s in streams}
        object.__setattr__(self, "streams", streams)
        object.__setattr__(self, "has_video", StreamKind.VIDEO in kinds)
        object.__setattr__(self, "has_audio", StreamKind.AUDIO in kinds)
        object.__setattr__(self, "has_subtitles", StreamKind.SUBTITLE in kinds)

    def streams_of(self, kind: StreamKind) -> list[MediaStream]:
        return [s for s in self.streams if s.kind is kind]
