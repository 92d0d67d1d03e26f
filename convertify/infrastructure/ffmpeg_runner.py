"""FFmpeg 실행 추상화. 모든 FFmpeg/FFprobe subprocess 호출은 이 클래스를 통해 수행.

Service 계층이 subprocess에 직접 의존하지 않도록 하여,
테스트 시 Mock으로 교체할 수 있게 함.
"""

from __future__ import annotations

import subprocess
import sys
from typing import Any

from convertify.services.errors import EngineNotFoundError
from convertify.utils.config import ENGINE_CHECK_TIMEOUT_SEC
from convertify.utils.ffmpeg_utils import find_ffmpeg, find_ffprobe


def _no_window(kwargs: dict[str, Any]) -> dict[str, Any]:
    if sys.platform == "win32":
        kwargs.setdefault("creationflags", subprocess.CREATE_NO_WINDOW)
    return kwargs


class FFmpegRunner:
    """FFmpeg/FFprobe 실행을 담당하는 인프라 클래스."""

    def __init__(self, ffmpeg_path: str | None = None, ffprobe_path: str | None = None):
        """경로를 지정하지 않으면 자동 탐색 (config → PATH → bundled)."""
        self._ffmpeg = ffmpeg_path or find_ffmpeg()
        self._ffprobe = ffprobe_path or find_ffprobe(ffmpeg_path=self._ffmpeg)

    @property
    def ffmpeg_path(self) -> str | None:
        return self._ffmpeg

    @property
    def ffprobe_path(self) -> str | None:
        return self._ffprobe

    def run_async(
        self,
        args: list[str],
        **kwargs: Any,
    ) -> subprocess.Popen:
        """FFmpeg를 비동기 실행 (Popen). 변환 진행률 스트리밍에 사용."""
        if not self._ffmpeg:
            raise EngineNotFoundError("FFmpeg not found. Please install FFmpeg.")
        cmd = [self._ffmpeg] + args
        return subprocess.Popen(cmd, **_no_window(kwargs))

    def run_ffprobe(
        self,
        args: list[str],
        *,
        check: bool = False,
        capture_output: bool = True,
        text: bool = True,
        timeout: int | None = None,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess:
        """FFprobe를 동기 실행."""
        if not self._ffprobe:
            raise EngineNotFoundError("FFprobe not found. Please install FFmpeg.")
        cmd = [self._ffprobe] + args
        run_kwargs = _no_window(dict(capture_output=capture_output, text=text, **kwargs))
        if timeout is not None:
            run_kwargs["timeout"] = timeout
        return subprocess.run(cmd, check=check, **run_kwargs)

    # ------------------------------------------------------------ version

    def ffmpeg_version(self) -> str:
        """`ffmpeg -version` 첫 줄 반환. 실행 불가 시 EngineNotFoundError."""
        return self._version_line(self._ffmpeg, "FFmpeg")

    def ffprobe_version(self) -> str:
        """`ffprobe -version` 첫 줄 반환. 실행 불가 시 EngineNotFoundError."""
        return self._version_line(self._ffprobe, "FFprobe")

    @staticmethod
    def _version_line(executable: str | None, label: str) -> str:
        if not executable:
            raise EngineNotFoundError(f"{label} not found. Please install FFmpeg.")
        try:
            result = subprocess.run(
                [executable, "-version"],
                **_no_window(dict(
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=ENGINE_CHECK_TIMEOUT_SEC,
                )),
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise EngineNotFoundError(f"{label} could not be executed: {e}") from e

        if result.returncode != 0:
            raise EngineNotFoundError(
                f"{label} exited with code {result.returncode}: {result.stderr.strip()[:200]}"
            )
        lines = result.stdout.splitlines()
        return lines[0] if lines else f"{label.lower()} version unknown"


# 싱글톤 인스턴스 (대부분의 서비스에서 공유)
_default_runner: FFmpegRunner | None = None


def get_ffmpeg_runner() -> FFmpegRunner:
    """기본 FFmpegRunner 인스턴스 반환."""
    global _default_runner
    if _default_runner is None:
        _default_runner = FFmpegRunner()
    return _default_runner

