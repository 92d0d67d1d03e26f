"""Conversion request / progress / result models (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from convertify.services.errors import BuildError


@dataclass(frozen=True)
class StreamSelection:
    """Which stream kinds to keep. A flag is a no-op if the file lacks that kind."""

    include_video: bool = True
    include_audio: bool = True
    include_subtitles: bool = True


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class AdvancedOptions:
    """Explicit container/codec overrides used instead of a preset.

    ``None`` (or a blank string) means "unspecified". The codec fields also
    accept ``"copy"`` (stream copy) and ``"none"`` (drop the stream).
    ``extra_args`` is passed to FFmpeg verbatim after all other flags.
    """

    format: str | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    extra_args: str | None = None

    def __post_init__(self) -> None:
        for name in ("format", "video_codec", "audio_codec", "extra_args"):
            object.__setattr__(self, name, _blank_to_none(getattr(self, name)))

    def is_empty(self) -> bool:
        return not any((self.format, self.video_codec, self.audio_codec, self.extra_args))

    def summary(self) -> str:
        return (
            f"format={self.format!r}, video_codec={self.video_codec!r}, "
            f"audio_codec={self.audio_codec!r}, extra_args={self.extra_args!r}"
        )


@dataclass(frozen=True)
class PresetTarget:
    """Convert using a catalog preset."""

    preset_id: str


# Exactly one of the two: a request is either preset-driven or advanced.
ConversionTarget = Union[PresetTarget, AdvancedOptions]


@dataclass(frozen=True)
class ConversionRequest:
    """The resolved intent of one conversion job."""

    input_path: str
    output_path: str
    target: ConversionTarget
    streams: StreamSelection = field(default_factory=StreamSelection)

    @property
    def preset_id(self) -> str | None:
        return self.target.preset_id if isinstance(self.target, PresetTarget) else None

    @property
    def advanced(self) -> AdvancedOptions | None:
        return self.target if isinstance(self.target, AdvancedOptions) else None

    @classmethod
    def from_options(
        cls,
        input_path: str,
        output_path: str,
        preset_id: str | None = None,
        advanced: AdvancedOptions | None = None,
        stream_selection: StreamSelection | None = None,
    ) -> "ConversionRequest":
        """Build a request from the two-optional-fields shape used by callers.

        Raises:
            BuildError: If both or neither of *preset_id* / *advanced* are given.
        """
        preset_id = _blank_to_none(preset_id)
        if preset_id and advanced is not None:
            raise BuildError("Choose either a preset or advanced options, not both")
        if preset_id:
            target: ConversionTarget = PresetTarget(preset_id)
        elif advanced is not None:
            target = advanced
        else:
            raise BuildError("No preset or advanced options given")
        return cls(
            input_path=input_path,
            output_path=output_path,
            target=target,
            streams=stream_selection or StreamSelection(),
        )


@dataclass(frozen=True)
class ProgressSnapshot:
    """One parsed FFmpeg status line."""

    percent: float                  # 0–100, 0 when the duration is unknown
    time_secs: float                # media time encoded so far
    speed: str | None = None        # e.g. "2.3x"
    bitrate: str | None = None      # e.g. "1200.0kbits/s"
    size_kb: int | None = None


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


@dataclass(frozen=True)
class JobResult:
    """Terminal outcome of a job. Produced exactly once per job."""

    state: JobState
    output_path: str
    duration_secs: float
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.state is JobState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.state is JobState.CANCELLED
