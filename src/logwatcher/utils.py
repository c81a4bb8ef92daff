"""File helpers shared by the CLI and the watcher."""

import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from logwatcher.errors import FileAccessError

log = structlog.get_logger()

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def is_file_readable(path: str | Path) -> bool:
    """Check if a path is a regular file we can open for reading."""
    path = Path(path)
    if not path.is_file():
        return False
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False


def get_file_size(path: str | Path) -> int:
    return os.stat(path).st_size


def validate_files(paths: Iterable[str | Path]) -> tuple[list[Path], list[str]]:
    """Split requested files into readable ones and error messages.

    Returns:
        (readable paths, one message per unreadable path)

    Raises:
        FileAccessError: if no file at all is readable
    """
    valid: list[Path] = []
    errors: list[str] = []

    for raw in paths:
        path = Path(raw)
        if is_file_readable(path):
            valid.append(path)
        else:
            errors.append(f"File not readable: {path}")

    if not valid:
        raise FileAccessError(f"No valid files to watch: {', '.join(errors) or 'none given'}")

    if errors:
        log.warning("Some files are not accessible", errors=errors)

    return valid, errors


def format_file_size(size: int) -> str:
    """Format a byte count, e.g. 1536 -> '1.5 KB'."""
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1

    if unit == 0:
        return f"{size} B"
    return f"{value:.1f} {_SIZE_UNITS[unit]}"


def get_filename(path: str | Path) -> str:
    """Return the final path component, or 'unknown' for paths without one."""
    return Path(path).name or "unknown"
