"""Exception types raised by the conversion services.

Each type also derives from the builtin exception family that the engine
helpers have always raised (``FileNotFoundError`` for a missing engine,
``RuntimeError`` for engine failures, ``ValueError`` for bad requests), so
existing ``except`` clauses keep working.
"""

from __future__ import annotations


class ConvertifyError(Exception):
    """Base class for all conversion errors."""


class EngineNotFoundError(ConvertifyError, FileNotFoundError):
    """FFmpeg or FFprobe is not installed or cannot be executed."""

    def __init__(self, detail: str = "FFmpeg not found. Please install FFmpeg."):
        super().__init__(detail)
        self.detail = detail


class ProbeError(ConvertifyError, RuntimeError):
    """The input file could not be probed."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class BuildError(ConvertifyError, ValueError):
    """A conversion request is internally inconsistent."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AlreadyRunningError(ConvertifyError, RuntimeError):
    """A conversion was started while another one is still running."""

    def __init__(self, message: str = "A conversion is already in progress"):
        super().__init__(message)


class EngineRuntimeError(ConvertifyError, RuntimeError):
    """FFmpeg exited with a non-zero status during a conversion."""
