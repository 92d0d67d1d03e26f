"""Infrastructure layer: external engines (FFmpeg, FFprobe).

이 계층은 외부 도구를 추상화하여 Service 계층이
구현체에 직접 의존하지 않도록 합니다.
"""

from convertify.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner

__all__ = [
    "FFmpegRunner",
    "get_ffmpeg_runner",
]
