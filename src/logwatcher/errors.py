"""Exceptions raised by logwatcher."""

from pathlib import Path


class LogWatcherError(Exception):
    """Base class for logwatcher errors."""


class ConfigError(LogWatcherError):
    """Invalid rule configuration (bad pattern, bad color, oversized regex)."""

    def __init__(self, message: str, pattern: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.pattern = pattern
        self.reason = reason


class UnknownColorError(ConfigError):
    """Color name outside the supported vocabulary."""

    def __init__(self, color_name: str):
        super().__init__(f"Unknown color: {color_name}", reason="unknown color")
        self.color_name = color_name


class FileAccessError(LogWatcherError):
    """None of the requested files can be opened."""


class TailIOError(LogWatcherError):
    """Read or seek failure while tailing a file."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class RotationRecoveryError(TailIOError):
    """File did not reappear after rotation."""


class NotificationDispatchError(LogWatcherError):
    """The notification sink failed to deliver an alert."""
