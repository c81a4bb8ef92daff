"""Events passed from tail workers to the consumer."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class LineEvent:
    """A complete new line read from a file."""

    path: Path
    line: str


@dataclass(frozen=True)
class FileRotated:
    """The file shrank or was replaced."""

    path: Path


@dataclass(frozen=True)
class FileReopened:
    """The file reappeared after rotation; tailing resumes from offset 0."""

    path: Path


@dataclass(frozen=True)
class FileError:
    """Tailing the file failed; its worker has stopped."""

    path: Path
    message: str


FileEvent = LineEvent | FileRotated | FileReopened | FileError
