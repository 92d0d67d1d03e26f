"""공용 픽스처: 가짜 FFmpeg 프로세스와 미디어 설명.

실제 ffmpeg 없이 테스트하기 위해 run_async가 작은 Python 자식 프로세스를
띄우도록 FFmpegRunner를 모킹한다. 스크립트는 FFmpeg 인자를 그대로 받으므로
sys.argv[-1]이 출력 경로다.
"""

from __future__ import annotations

import subprocess
import sys
import textwrap
from unittest.mock import MagicMock

import pytest

from convertify.infrastructure.ffmpeg_runner import FFmpegRunner
from convertify.models.media import MediaDescription, MediaStream, StreamKind

# 상태줄 4개(\r 종료)를 쓰고 출력 파일을 만든 뒤 정상 종료
SUCCESS_SCRIPT = textwrap.dedent("""
    import sys, time
    with open(sys.argv[-1], "wb") as f:
        f.write(b"converted")
    sys.stderr.write("Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'movie.mp4':\\n")
    for i in range(1, 5):
        sys.stderr.write(
            f"frame={i * 50:5d} fps=25 q=28.0 size={i * 256:8d}kB "
            f"time=00:00:0{i * 2}.00 bitrate=1048.6kbits/s speed=2.00x\\r"
        )
        sys.stderr.flush()
        time.sleep(0.02)
    sys.stderr.write("\\n")
""")

# 진단 메시지를 남기고 실패
FAIL_SCRIPT = textwrap.dedent("""
    import sys
    sys.stderr.write("Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'movie.mp4':\\n")
    sys.stderr.write("Unknown encoder 'libfoo'\\n")
    sys.stderr.write("Error selecting an encoder for stream #0:0\\n")
    sys.exit(1)
""")

# 부분 출력을 만든 뒤 취소될 때까지 진행률을 계속 출력
SLOW_SCRIPT = textwrap.dedent("""
    import sys, time
    with open(sys.argv[-1], "wb") as f:
        f.write(b"partial")
    for i in range(600):
        sys.stderr.write(f"frame={i} size={i}kB time=00:00:00.{i % 100:02d} speed=1.0x\\r")
        sys.stderr.flush()
        time.sleep(0.05)
""")

# SIGTERM을 무시 → kill 타이머로만 종료됨
STUBBORN_SCRIPT = textwrap.dedent("""
    import signal, sys, time
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    sys.stderr.write("frame=1 size=1kB time=00:00:00.04 speed=1.0x\\r")
    sys.stderr.flush()
    time.sleep(30)
""")


def make_runner(script: str = SUCCESS_SCRIPT) -> MagicMock:
    """run_async가 *script*를 실행하는 FFmpegRunner 목 생성."""
    runner = MagicMock(spec=FFmpegRunner)
    runner.ffmpeg_path = "ffmpeg"
    runner.ffprobe_path = "ffprobe"

    def _spawn(args, **kwargs):
        return subprocess.Popen([sys.executable, "-c", script, *args], **kwargs)

    runner.run_async.side_effect = _spawn
    return runner


def make_media(path: str = "/media/movie.mp4", duration: float | None = 10.0,
               subtitles: bool = False) -> MediaDescription:
    streams = [
        MediaStream(0, StreamKind.VIDEO, "h264", width=1920, height=1080, frame_rate="25/1"),
        MediaStream(1, StreamKind.AUDIO, "aac", sample_rate=48000, channels=2),
    ]
    if subtitles:
        streams.append(MediaStream(2, StreamKind.SUBTITLE, "mov_text", language="eng"))
    return MediaDescription(
        path=path,
        filename=path.rsplit("/", 1)[-1],
        format_name="mov,mp4,m4a,3gp,3g2,mj2",
        duration=duration,
        streams=tuple(streams),
    )


@pytest.fixture
def media() -> MediaDescription:
    return make_media()
