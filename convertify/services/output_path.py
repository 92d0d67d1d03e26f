"""Default output path generation for a conversion."""

from __future__ import annotations

import os
from pathlib import Path

from convertify.models.preset import find_preset
from convertify.utils.config import DEFAULT_OUTPUT_EXTENSION, OUTPUT_COLLISION_SUFFIX

# FFmpeg muxer name → file extension. Unlisted formats use their own name.
_FORMAT_EXTENSIONS: dict[str, str] = {
    "mp4": "mp4",
    "mov": "mov",
    "matroska": "mkv",
    "mkv": "mkv",
    "webm": "webm",
    "avi": "avi",
    "flv": "flv",
    "wmv": "wmv",
    "asf": "wmv",
    "mpeg": "mpeg",
    "mpegts": "ts",
    "3gp": "3gp",
    "mp3": "mp3",
    "flac": "flac",
    "wav": "wav",
    "ogg": "ogg",
    "opus": "opus",
    "aac": "aac",
    "adts": "aac",
    "m4a": "m4a",
    "ipod": "m4a",
    "gif": "gif",
    "image2": "png",
    "png": "png",
    "mjpeg": "jpg",
    "jpeg": "jpg",
    "jpg": "jpg",
    "webp": "webp",
    "rawvideo": "raw",
    "null": "null",
}

_MAX_COUNTER = 9999


def format_to_extension(fmt: str) -> str:
    """Map an FFmpeg format name to a file extension (fallback: the name itself)."""
    fmt = fmt.strip().lstrip(".").lower()
    return _FORMAT_EXTENSIONS.get(fmt, fmt)


def same_path(a: Path | str, b: Path | str) -> bool:
    """True if *a* and *b* may name the same file.

    Compared case-insensitively on every platform, since the default macOS
    and Windows file systems ignore case. Paths that both exist are also
    compared by identity (links, aliases).
    """
    a_abs = os.path.abspath(a)
    b_abs = os.path.abspath(b)
    if os.path.normcase(a_abs).casefold() == os.path.normcase(b_abs).casefold():
        return True
    try:
        return os.path.samefile(a_abs, b_abs)
    except OSError:
        return False


def _numbered(parent: Path, stem: str, extension: str, counter: int) -> Path:
    return parent / f"{stem}_{counter}.{extension}"


def resolve_output_path(
    input_path: Path | str,
    preset_id: str | None = None,
    fmt: str | None = None,
    last_extension: str = DEFAULT_OUTPUT_EXTENSION,
    avoid_existing: bool = False,
) -> str:
    """Derive the default output path for *input_path*.

    The extension comes from the preset if one is given, else from *fmt*,
    else *last_extension*. The result keeps the input's directory and stem
    and is never the input path itself: a clash gets ``_converted`` appended
    to the stem.

    With *avoid_existing* the stem is additionally numbered (``_2``, ``_3``…)
    while a file with that name exists.
    """
    source = Path(input_path)
    extension = extension_for(preset_id, fmt, last_extension)

    stem = source.stem or source.name or "output"
    parent = source.parent
    candidate = parent / f"{stem}.{extension}"
    if same_path(candidate, source):
        stem = f"{stem}{OUTPUT_COLLISION_SUFFIX}"
        candidate = parent / f"{stem}.{extension}"

    if avoid_existing and candidate.exists():
        for counter in range(2, _MAX_COUNTER + 1):
            candidate = _numbered(parent, stem, extension, counter)
            if not candidate.exists():
                break

    return str(candidate)


def extension_for(
    preset_id: str | None,
    fmt: str | None,
    last_extension: str = DEFAULT_OUTPUT_EXTENSION,
) -> str:
    """Pick the output extension: preset → explicit format → *last_extension*."""
    if preset_id:
        preset = find_preset(preset_id)
        if preset is not None:
            return preset.extension
        return last_extension
    if fmt and fmt.strip():
        return format_to_extension(fmt)
    return last_extension


class OutputPathResolver:
    """Resolves output paths, remembering the last extension it used.

    A call without preset or format reuses that extension, so switching
    input files keeps the target the user already picked.
    """

    def __init__(self, last_extension: str = DEFAULT_OUTPUT_EXTENSION):
        self._last_extension = last_extension

    @property
    def last_extension(self) -> str:
        return self._last_extension

    def resolve(
        self,
        input_path: Path | str,
        preset_id: str | None = None,
        fmt: str | None = None,
        avoid_existing: bool = False,
    ) -> str:
        self._last_extension = extension_for(preset_id, fmt, self._last_extension)
        return resolve_output_path(
            input_path,
            last_extension=self._last_extension,
            avoid_existing=avoid_existing,
        )
