"""Application configuration constants."""

from __future__ import annotations

import sys
from pathlib import Path

APP_NAME = "Convertify"
APP_VERSION = "0.1.0"
ORG_NAME = "Convertify"

# FFmpeg
if sys.platform == "darwin":
    FFMPEG_PATH = "/opt/homebrew/bin/ffmpeg"
elif sys.platform == "win32":
    FFMPEG_PATH = r"C:\ffmpeg\bin\ffmpeg.exe"
else:
    FFMPEG_PATH = "/usr/bin/ffmpeg"

# Engine timeouts
PROBE_TIMEOUT_SEC = 30
ENGINE_CHECK_TIMEOUT_SEC = 10

# Seconds between terminate() and kill() when a conversion is cancelled
CANCEL_GRACE_SEC = 5.0

# Engine output lines kept as the failure message of a job
DIAGNOSTIC_TAIL_LINES = 3

# Conversion history
MAX_CONVERSION_LOGS = 50
LOG_DIR = Path.home() / ".convertify" / "logs"

# Output naming
DEFAULT_OUTPUT_EXTENSION = "mp4"
OUTPUT_COLLISION_SUFFIX = "_converted"
