"""Conversion preset catalog (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PresetCategory(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"


@dataclass(frozen=True)
class Preset:
    """A named target container + codec policy."""

    id: str
    name: str
    category: PresetCategory
    extension: str                  # Output file extension without the dot
    format: str | None = None       # FFmpeg muxer name passed to -f
    video_codec: str | None = None
    audio_codec: str | None = None
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    @property
    def file_extension(self) -> str:
        return f".{self.extension}"

    def build_args(self, skip_video: bool = False, skip_audio: bool = False) -> list[str]:
        """Build the FFmpeg output arguments for this preset.

        *skip_video* / *skip_audio* leave out the codec flag of a stream that
        is dropped from the output.
        """
        args: list[str] = []
        if self.format:
            args += ["-f", self.format]
        if self.video_codec and not skip_video:
            args += ["-c:v", self.video_codec]
        if self.audio_codec and not skip_audio:
            args += ["-c:a", self.audio_codec]
        args.extend(self.extra_args)
        return args


_V = PresetCategory.VIDEO
_A = PresetCategory.AUDIO
_I = PresetCategory.IMAGE

_GIF_FILTER = "fps=15,scale=480:-1:flags=lanczos,split[s0][s1];[s0]palettegen[p];[s1][p]paletteuse"

PRESETS: tuple[Preset, ...] = (
    # Video
    Preset("mp4_h264", "MP4 (H.264)", _V, "mp4", "mp4", "libx264", "aac",
           ("-preset", "medium", "-crf", "23")),
    Preset("mp4_h265", "MP4 (H.265/HEVC)", _V, "mp4", "mp4", "libx265", "aac",
           ("-preset", "medium", "-crf", "28")),
    Preset("webm_vp9", "WebM (VP9)", _V, "webm", "webm", "libvpx-vp9", "libopus",
           ("-crf", "30", "-b:v", "0")),
    Preset("avi", "AVI", _V, "avi", "avi", "mpeg4", "mp3", ("-q:v", "5")),
    Preset("mkv", "MKV (H.264)", _V, "mkv", "matroska", "libx264", "aac",
           ("-preset", "medium", "-crf", "23")),
    Preset("mov", "MOV (ProRes)", _V, "mov", "mov", "prores_ks", "pcm_s16le",
           ("-profile:v", "3")),
    Preset("gif", "GIF (Animated)", _V, "gif", "gif", None, None, ("-vf", _GIF_FILTER)),
    # Audio
    Preset("mp3", "MP3", _A, "mp3", "mp3", None, "libmp3lame", ("-q:a", "2", "-vn")),
    Preset("aac", "AAC (M4A)", _A, "m4a", "ipod", None, "aac", ("-b:a", "192k", "-vn")),
    Preset("flac", "FLAC (Lossless)", _A, "flac", "flac", None, "flac", ("-vn",)),
    Preset("opus", "Opus", _A, "opus", "opus", None, "libopus", ("-b:a", "128k", "-vn")),
    Preset("wav", "WAV (PCM)", _A, "wav", "wav", None, "pcm_s16le", ("-vn",)),
    # Image
    Preset("png", "PNG", _I, "png", "image2", "png", None, ("-frames:v", "1", "-an")),
    Preset("jpg", "JPEG", _I, "jpg", "image2", "mjpeg", None,
           ("-frames:v", "1", "-q:v", "2", "-an")),
    Preset("webp", "WebP", _I, "webp", "webp", "libwebp", None,
           ("-frames:v", "1", "-quality", "80", "-an")),
)

_BY_ID = {p.id: p for p in PRESETS}


def list_presets() -> list[Preset]:
    """Return the fixed preset catalog in display order."""
    return list(PRESETS)


def find_preset(preset_id: str) -> Preset | None:
    """Look up a preset by its id."""
    return _BY_ID.get(preset_id)
