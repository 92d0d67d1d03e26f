"""Per-conversion history log kept in memory and optionally appended to disk."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from convertify.utils.config import MAX_CONVERSION_LOGS

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "conversion_log.txt"


class LogLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARN"
    ERROR = "ERROR"
    DEBUG = "DEBUG"


@dataclass
class LogEntry:
    timestamp: str
    level: LogLevel
    message: str
    context: str | None = None


@dataclass
class ConversionLog:
    """Everything that happened during one conversion."""

    input_path: str
    output_path: str
    command: str
    preset_id: str | None = None
    advanced_options: str | None = None
    id: str = ""
    started_at: str = ""
    ended_at: str | None = None
    success: bool = False
    error_message: str | None = None
    entries: list[LogEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        now = datetime.now()
        if not self.id:
            self.id = str(int(now.timestamp() * 1000))
        if not self.started_at:
            self.started_at = now.strftime("%Y-%m-%d %H:%M:%S")

    def add_entry(self, level: LogLevel, message: str, context: str | None = None) -> None:
        self.entries.append(LogEntry(
            timestamp=datetime.now().strftime("%H:%M:%S.%f")[:-3],
            level=level,
            message=message,
            context=context,
        ))

    def finish(self, success: bool, error_message: str | None = None) -> None:
        self.ended_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.success = success
        self.error_message = error_message

    def format(self) -> str:
        """Render the log as a plain-text block."""
        lines = [
            f"=== Conversion {self.id} ===",
            f"Started: {self.started_at}",
        ]
        if self.ended_at:
            lines.append(f"Ended: {self.ended_at}")
        lines.append(f"Input: {self.input_path}")
        lines.append(f"Output: {self.output_path}")
        if self.preset_id:
            lines.append(f"Preset: {self.preset_id}")
        if self.advanced_options:
            lines.append(f"Advanced: {self.advanced_options}")
        lines.append(f"Command: {self.command}")
        lines.append(f"Success: {str(self.success).lower()}")
        if self.error_message:
            lines.append(f"Error: {self.error_message}")
        lines.append("")
        lines.append("--- Log Entries ---")
        for entry in self.entries:
            text = f"[{entry.timestamp}] [{entry.level.value}] {entry.message}"
            if entry.context:
                text += f" ({entry.context})"
            lines.append(text)
        return "\n".join(lines) + "\n\n\n"


class LogStore:
    """Thread-safe ring of the most recent conversion logs."""

    def __init__(self, max_logs: int = MAX_CONVERSION_LOGS, log_dir: Path | None = None):
        self._logs: list[ConversionLog] = []
        self._max_logs = max_logs
        self._log_dir = log_dir
        self._lock = threading.Lock()

    def add_log(self, log: ConversionLog) -> None:
        with self._lock:
            self._logs.append(log)
            del self._logs[:-self._max_logs]
            log_dir = self._log_dir

        if log_dir is None:
            return
        path = log_dir / LOG_FILE_NAME
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                f.write(log.format())
        except OSError as e:
            logger.warning(f"Could not append conversion log to {path}: {e}")

    def get_logs(self) -> list[ConversionLog]:
        with self._lock:
            return list(self._logs)

    def get_last_log(self) -> ConversionLog | None:
        with self._lock:
            return self._logs[-1] if self._logs else None

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()

    def export_logs(self) -> str:
        return "".join(log.format() for log in self.get_logs())

    def set_log_dir(self, log_dir: Path | None) -> None:
        with self._lock:
            self._log_dir = log_dir

    def get_log_file_path(self) -> Path | None:
        """Path of the on-disk log, or None when file logging is off."""
        with self._lock:
            return self._log_dir / LOG_FILE_NAME if self._log_dir else None
