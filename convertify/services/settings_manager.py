"""Settings manager for application preferences."""

from pathlib import Path
from typing import Any, Optional

from PySide6.QtCore import QSettings

from convertify.utils.config import CANCEL_GRACE_SEC, DEFAULT_OUTPUT_EXTENSION, LOG_DIR


class SettingsManager:
    """Wrapper around QSettings for type-safe preference management."""

    def __init__(self):
        self._settings = QSettings()

    # ---------------------------------------------------- Engine Settings

    def get_ffmpeg_path(self) -> Optional[str]:
        """Get the custom FFmpeg path (None for auto-detect)."""
        path = self._settings.value("engine/ffmpeg_path", "", str)
        return path if path else None

    def set_ffmpeg_path(self, path: Optional[str]) -> None:
        """Set the custom FFmpeg path (None for auto-detect)."""
        self._settings.setValue("engine/ffmpeg_path", path or "")

    def get_ffprobe_path(self) -> Optional[str]:
        """Get the custom FFprobe path (None for auto-detect)."""
        path = self._settings.value("engine/ffprobe_path", "", str)
        return path if path else None

    def set_ffprobe_path(self, path: Optional[str]) -> None:
        """Set the custom FFprobe path (None for auto-detect)."""
        self._settings.setValue("engine/ffprobe_path", path or "")

    def get_cancel_grace_period(self) -> float:
        """Seconds to wait after a cancel before FFmpeg is killed (default: 5)."""
        return float(self._settings.value("engine/cancel_grace", CANCEL_GRACE_SEC, float))

    def set_cancel_grace_period(self, seconds: float) -> None:
        self._settings.setValue("engine/cancel_grace", float(seconds))

    # ---------------------------------------------------- Conversion Settings

    def get_last_extension(self) -> str:
        """Get the extension of the last resolved output path (default: mp4)."""
        return self._settings.value("convert/last_extension", DEFAULT_OUTPUT_EXTENSION, str)

    def set_last_extension(self, extension: str) -> None:
        self._settings.setValue("convert/last_extension", extension)

    def get_last_preset(self) -> Optional[str]:
        """Get the id of the last preset used (None if never set)."""
        preset_id = self._settings.value("convert/last_preset", "", str)
        return preset_id if preset_id else None

    def set_last_preset(self, preset_id: Optional[str]) -> None:
        self._settings.setValue("convert/last_preset", preset_id or "")

    # ---------------------------------------------------- Logging Settings

    def get_file_logging_enabled(self) -> bool:
        """Whether conversion logs are appended to a file (default: True)."""
        value = self._settings.value("logging/file_enabled", True)
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)

    def set_file_logging_enabled(self, enabled: bool) -> None:
        self._settings.setValue("logging/file_enabled", bool(enabled))

    def get_log_dir(self) -> Path:
        """Get the directory for conversion logs."""
        path = self._settings.value("logging/log_dir", "", str)
        return Path(path) if path else LOG_DIR

    def set_log_dir(self, path: Optional[Path]) -> None:
        self._settings.setValue("logging/log_dir", str(path) if path else "")

    # ---------------------------------------------------- General Methods

    def reset_to_defaults(self) -> None:
        """Reset all settings to default values."""
        self._settings.clear()

    def sync(self) -> None:
        """Force synchronization of settings to disk."""
        self._settings.sync()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value by key."""
        return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a setting value by key."""
        self._settings.setValue(key, value)
