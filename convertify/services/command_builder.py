"""Build FFmpeg argument lists from a conversion request.

Pure: no process is started here and the same request + media description
always produces the same argument list.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path

from convertify.models.conversion import AdvancedOptions, ConversionRequest, PresetTarget
from convertify.models.media import MediaDescription
from convertify.models.preset import find_preset
from convertify.services.errors import BuildError
from convertify.services.output_path import same_path

_COPY = "copy"
_NONE = "none"

# Stream-disable directive per stream kind, in emission order.
_DROP_VIDEO = "-vn"
_DROP_AUDIO = "-an"
_DROP_SUBTITLES = "-sn"


def split_extra_args(extra: str | None) -> list[str]:
    """Split the free-form extra-arguments string into tokens.

    Whitespace separates tokens; a single- or double-quoted run is kept as
    one token with the quotes removed. Nothing else is interpreted (no
    backslash escapes), so Windows paths pass through untouched. The tokens
    are not validated: they are the user's escape hatch into FFmpeg.
    """
    if not extra:
        return []

    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    in_token = False

    for ch in extra:
        if quote is not None:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            in_token = True
        elif ch.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(ch)
            in_token = True

    if in_token:
        tokens.append("".join(current))
    return tokens


def _codec_value(value: str | None) -> str | None:
    return value.strip().lower() if value else None


def _disabled_streams(request: ConversionRequest, media: MediaDescription) -> list[str]:
    sel = request.streams
    advanced = request.advanced
    vcodec = _codec_value(advanced.video_codec) if advanced else None
    acodec = _codec_value(advanced.audio_codec) if advanced else None

    drops: list[str] = []
    if media.has_video and (not sel.include_video or vcodec == _NONE):
        drops.append(_DROP_VIDEO)
    if media.has_audio and (not sel.include_audio or acodec == _NONE):
        drops.append(_DROP_AUDIO)
    if media.has_subtitles and not sel.include_subtitles:
        drops.append(_DROP_SUBTITLES)
    return drops


def _preset_args(preset_id: str, drops: list[str]) -> list[str]:
    preset = find_preset(preset_id)
    if preset is None:
        raise BuildError(f"Preset not found: {preset_id}")
    return preset.build_args(
        skip_video=_DROP_VIDEO in drops,
        skip_audio=_DROP_AUDIO in drops,
    )


def _advanced_args(advanced: AdvancedOptions, drops: list[str]) -> list[str]:
    if advanced.is_empty():
        raise BuildError("Advanced options are empty: set a format, a codec or extra arguments")

    args: list[str] = []
    if advanced.format:
        args += ["-f", advanced.format]

    vcodec = advanced.video_codec
    if vcodec and _codec_value(vcodec) != _NONE and _DROP_VIDEO not in drops:
        args += ["-c:v", _COPY if _codec_value(vcodec) == _COPY else vcodec]

    acodec = advanced.audio_codec
    if acodec and _codec_value(acodec) != _NONE and _DROP_AUDIO not in drops:
        args += ["-c:a", _COPY if _codec_value(acodec) == _COPY else acodec]

    # Appended last so FFmpeg's "last flag wins" lets them override the above.
    args.extend(split_extra_args(advanced.extra_args))
    return args


def build_ffmpeg_args(request: ConversionRequest, media: MediaDescription) -> list[str]:
    """Build the FFmpeg argument list (without the executable) for *request*.

    Layout::

        -hide_banner -i <input> [-vn] [-an] [-sn] <target args> [extra] -y <output>

    Raises:
        BuildError: If the request cannot be turned into a command (blank
            paths, output equal to input, unknown preset, empty advanced
            options).
    """
    if not request.input_path or not request.input_path.strip():
        raise BuildError("Input path is empty")
    if not request.output_path or not request.output_path.strip():
        raise BuildError("Output path is empty")

    input_path = Path(os.path.abspath(request.input_path))
    output_path = Path(os.path.abspath(request.output_path))
    if same_path(input_path, output_path):
        raise BuildError(f"Output path must differ from the input path: {output_path}")

    drops = _disabled_streams(request, media)

    if isinstance(request.target, PresetTarget):
        target_args = _preset_args(request.target.preset_id, drops)
    elif isinstance(request.target, AdvancedOptions):
        target_args = _advanced_args(request.target, drops)
    else:
        raise BuildError(f"Unsupported conversion target: {request.target!r}")

    return [
        "-hide_banner",
        "-i", str(input_path),
        *drops,
        *target_args,
        "-y",
        str(output_path),
    ]


def format_command(args: list[str], executable: str = "ffmpeg") -> str:
    """Render an argument list as a copy-pasteable shell command for logs."""
    return shlex.join([executable, *args])
