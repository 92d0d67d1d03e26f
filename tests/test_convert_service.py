"""ConvertService 통합 테스트: 모킹한 ffprobe + 가짜 FFmpeg 프로세스."""

from __future__ import annotations

import json
import subprocess

import pytest

from conftest import SLOW_SCRIPT, SUCCESS_SCRIPT, make_runner
from convertify.models.conversion import AdvancedOptions, JobState, StreamSelection
from convertify.services.conversion_log import LogStore
from convertify.services.convert_service import ConvertService
from convertify.services.errors import AlreadyRunningError, BuildError, EngineNotFoundError, ProbeError

PROBE_JSON = json.dumps({
    "streams": [
        {"index": 0, "codec_type": "video", "codec_name": "h264", "width": 640, "height": 360},
        {"index": 1, "codec_type": "audio", "codec_name": "aac"},
    ],
    "format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "duration": "10.0"},
})


def _service(script=SUCCESS_SCRIPT, **kwargs) -> ConvertService:
    runner = make_runner(script)
    runner.run_ffprobe.return_value = subprocess.CompletedProcess(
        args=[], returncode=0, stdout=PROBE_JSON, stderr=""
    )
    return ConvertService(runner=runner, log_store=LogStore(), **kwargs)


@pytest.fixture
def movie(tmp_path):
    path = tmp_path / "movie.mov"
    path.write_bytes(b"\x00")
    return path


class TestEngineCheck:
    def test_versions(self):
        service = _service()
        service.runner.ffmpeg_version.return_value = "ffmpeg version 6.1"
        service.runner.ffprobe_version.return_value = "ffprobe version 6.1"
        assert service.check_engine() == ("ffmpeg version 6.1", "ffprobe version 6.1")

    def test_missing(self):
        service = _service()
        service.runner.ffmpeg_version.side_effect = EngineNotFoundError()
        with pytest.raises(EngineNotFoundError):
            service.check_engine()


class TestStatelessOperations:
    def test_list_presets(self):
        assert len(_service().list_presets()) == 15

    def test_probe_file(self, movie):
        media = _service().probe_file(movie)
        assert media.has_video and media.has_audio
        assert media.duration == 10.0

    def test_probe_missing_file(self, tmp_path):
        with pytest.raises(ProbeError):
            _service().probe_file(tmp_path / "missing.mov")

    def test_output_path_remembers_extension(self, movie):
        service = _service(last_extension="mkv")
        assert service.get_output_path(movie).endswith("movie.mkv")
        assert service.get_output_path(movie, preset_id="gif").endswith("movie.gif")
        assert service.last_extension == "gif"
        assert service.get_output_path(movie).endswith("movie.gif")


class TestConversion:
    def test_start_probes_when_media_missing(self, movie, tmp_path):
        service = _service()
        handle = service.start_convert(str(movie), str(tmp_path / "movie.mp4"), preset_id="mp4_h264")
        result = handle.wait(15)

        assert result.state is JobState.COMPLETED
        service.runner.run_ffprobe.assert_called_once()
        assert not service.is_converting()
        assert service.get_last_log().success

    def test_advanced_with_stream_selection(self, movie, tmp_path):
        service = _service()
        handle = service.start_convert(
            str(movie), str(tmp_path / "audio.m4a"),
            advanced=AdvancedOptions(video_codec="none", audio_codec="copy"),
            stream_selection=StreamSelection(include_subtitles=False),
        )
        handle.wait(15)
        assert "-vn" in handle.args
        assert handle.args[handle.args.index("-c:a") + 1] == "copy"
        assert "Advanced:" in service.export_logs()

    def test_both_preset_and_advanced(self, movie, tmp_path):
        service = _service()
        with pytest.raises(BuildError):
            service.start_convert(str(movie), str(tmp_path / "o.mp4"), "mp4_h264",
                                  AdvancedOptions(format="mp4"))
        service.runner.run_async.assert_not_called()

    def test_probe_failure_starts_nothing(self, tmp_path):
        service = _service()
        with pytest.raises(ProbeError):
            service.start_convert(str(tmp_path / "missing.mov"), str(tmp_path / "o.mp4"), "mp4_h264")
        service.runner.run_async.assert_not_called()

    def test_second_start_rejected_then_cancel(self, movie, tmp_path):
        service = _service(SLOW_SCRIPT)
        handle = service.start_convert(str(movie), str(tmp_path / "a.mp4"), "mp4_h264")
        assert service.is_converting()

        with pytest.raises(AlreadyRunningError):
            service.start_convert(str(movie), str(tmp_path / "b.mp4"), "mp4_h264")

        service.cancel_convert()
        assert handle.wait(15).cancelled
        assert not service.is_converting()
        assert service.controller.state is JobState.CANCELLED

    def test_cancel_when_idle(self):
        service = _service()
        service.cancel_convert()
        assert not service.is_converting()

    def test_clear_logs(self, movie, tmp_path):
        service = _service()
        service.start_convert(str(movie), str(tmp_path / "o.mp4"), "mp4_h264").wait(15)
        assert service.get_logs()
        service.clear_logs()
        assert service.get_logs() == []
        assert service.get_last_log() is None
        assert service.get_log_file_path() is None
