"""Tests for FFmpeg argument construction."""

import os

import pytest

from conftest import make_media
from convertify.models.conversion import AdvancedOptions, ConversionRequest, StreamSelection
from convertify.models.media import MediaDescription, MediaStream, StreamKind
from convertify.services.command_builder import (
    build_ffmpeg_args,
    format_command,
    split_extra_args,
)
from convertify.services.errors import BuildError

INPUT = os.path.abspath("/media/movie.mp4")
OUTPUT = os.path.abspath("/media/movie_out.mp4")


def _preset(preset_id="mp4_h264", streams=None, output=OUTPUT):
    return ConversionRequest.from_options(INPUT, output, preset_id=preset_id, stream_selection=streams)


def _advanced(output=OUTPUT, streams=None, **options):
    return ConversionRequest.from_options(
        INPUT, output, advanced=AdvancedOptions(**options), stream_selection=streams
    )


class TestPresetCommand:
    def test_mp4_h264_full_layout(self):
        args = build_ffmpeg_args(_preset(), make_media(INPUT))
        assert args == [
            "-hide_banner",
            "-i", INPUT,
            "-f", "mp4",
            "-c:v", "libx264",
            "-c:a", "aac",
            "-preset", "medium", "-crf", "23",
            "-y", OUTPUT,
        ]

    def test_contains_input_codecs_and_output(self):
        args = build_ffmpeg_args(_preset(), make_media(INPUT))
        assert INPUT in args
        assert args[args.index("-c:v") + 1] == "libx264"
        assert "-c:a" in args
        assert args[-1].endswith(".mp4")

    def test_deterministic(self):
        media = make_media(INPUT, subtitles=True)
        request = _preset(streams=StreamSelection(include_subtitles=False))
        assert build_ffmpeg_args(request, media) == build_ffmpeg_args(request, media)

    def test_relative_paths_are_made_absolute(self):
        request = ConversionRequest.from_options("in.mp4", "out.mkv", preset_id="mkv")
        args = build_ffmpeg_args(request, make_media())
        assert args[2] == os.path.abspath("in.mp4")
        assert args[-1] == os.path.abspath("out.mkv")

    def test_unknown_preset(self):
        with pytest.raises(BuildError, match="Preset not found"):
            build_ffmpeg_args(_preset("betamax"), make_media(INPUT))

    def test_audio_preset_keeps_extra_vn(self):
        args = build_ffmpeg_args(_preset("mp3", output="/media/movie.mp3"), make_media(INPUT))
        assert args[args.index("-c:a") + 1] == "libmp3lame"
        assert "-c:v" not in args
        assert "-vn" in args


class TestStreamSelection:
    def test_excluded_streams_are_disabled(self):
        media = make_media(INPUT, subtitles=True)
        request = _preset(streams=StreamSelection(False, False, False))
        args = build_ffmpeg_args(request, media)

        assert args[3:6] == ["-vn", "-an", "-sn"]
        # 제거된 스트림의 코덱 플래그는 넣지 않음
        assert "-c:v" not in args
        assert "-c:a" not in args

    def test_exclusion_of_missing_kind_is_noop(self):
        media = make_media(INPUT)  # 자막 없음
        args = build_ffmpeg_args(_preset(streams=StreamSelection(include_subtitles=False)), media)
        assert "-sn" not in args

    def test_audio_only_source(self):
        media = MediaDescription(
            path=INPUT, filename="movie.mp4",
            streams=(MediaStream(0, StreamKind.AUDIO, "aac"),),
        )
        args = build_ffmpeg_args(_preset(streams=StreamSelection(include_video=False)), media)
        assert "-vn" not in args


class TestAdvancedCommand:
    def test_video_none_audio_copy(self):
        args = build_ffmpeg_args(
            _advanced(video_codec="none", audio_codec="copy"), make_media(INPUT)
        )
        assert "-vn" in args
        assert "-c:v" not in args
        assert args[args.index("-c:a") + 1] == "copy"

    def test_copy_is_case_insensitive(self):
        args = build_ffmpeg_args(_advanced(video_codec="COPY"), make_media(INPUT))
        assert args[args.index("-c:v") + 1] == "copy"

    def test_format_and_codecs(self):
        args = build_ffmpeg_args(
            _advanced(output="/media/movie.mkv", format="matroska", video_codec="libx265",
                      audio_codec="libopus"),
            make_media(INPUT),
        )
        assert args[3:9] == ["-f", "matroska", "-c:v", "libx265", "-c:a", "libopus"]

    def test_extra_args_appended_before_output(self):
        args = build_ffmpeg_args(
            _advanced(video_codec="libx264", extra_args='-vf "scale=1280:-2" -crf 20'),
            make_media(INPUT),
        )
        assert args[-6:] == ["-vf", "scale=1280:-2", "-crf", "20", "-y", OUTPUT]

    def test_extra_args_only(self):
        args = build_ffmpeg_args(_advanced(extra_args="-t 5"), make_media(INPUT))
        assert args == ["-hide_banner", "-i", INPUT, "-t", "5", "-y", OUTPUT]

    def test_empty_advanced_options(self):
        with pytest.raises(BuildError, match="empty"):
            build_ffmpeg_args(_advanced(format="  "), make_media(INPUT))


class TestRequestValidation:
    def test_output_equal_to_input(self):
        with pytest.raises(BuildError, match="differ"):
            build_ffmpeg_args(_preset(output=INPUT), make_media(INPUT))

    def test_output_differs_only_in_case(self):
        # macOS/Windows 기본 파일시스템에서는 같은 파일을 가리킨다
        with pytest.raises(BuildError, match="differ"):
            build_ffmpeg_args(_preset(output=os.path.abspath("/media/MOVIE.MP4")), make_media(INPUT))

    def test_blank_paths(self):
        media = make_media(INPUT)
        with pytest.raises(BuildError, match="Input path"):
            build_ffmpeg_args(ConversionRequest.from_options(" ", OUTPUT, "mp4_h264"), media)
        with pytest.raises(BuildError, match="Output path"):
            build_ffmpeg_args(ConversionRequest.from_options(INPUT, "", "mp4_h264"), media)

    def test_preset_and_advanced_are_exclusive(self):
        with pytest.raises(BuildError):
            ConversionRequest.from_options(INPUT, OUTPUT, "mp4_h264", AdvancedOptions(format="mp4"))
        with pytest.raises(BuildError):
            ConversionRequest.from_options(INPUT, OUTPUT)


class TestSplitExtraArgs:
    def test_whitespace(self):
        assert split_extra_args("  -b:v   2M\t-maxrate 3M ") == ["-b:v", "2M", "-maxrate", "3M"]

    def test_quotes_group(self):
        assert split_extra_args("-metadata title='My Movie' -vf \"a, b\"") == [
            "-metadata", "title=My Movie", "-vf", "a, b",
        ]

    def test_empty_quotes_make_empty_token(self):
        assert split_extra_args('-metadata ""') == ["-metadata", ""]

    def test_backslashes_untouched(self):
        assert split_extra_args(r"-i C:\clips\logo.png") == ["-i", r"C:\clips\logo.png"]

    def test_none_and_blank(self):
        assert split_extra_args(None) == []
        assert split_extra_args("   ") == []


class TestFormatCommand:
    def test_quotes_spaces(self):
        assert format_command(["-i", "my movie.mp4"], "/usr/bin/ffmpeg") == (
            "/usr/bin/ffmpeg -i 'my movie.mp4'"
        )
