"""Per-file tailing state machine with rotation detection.

A Tailer remembers how many bytes of a file it has consumed. Each poll
compares the current size against that offset:

- grown: read the new bytes, split them into lines, advance the offset
- shrunk, replaced by a different inode, or missing: report a rotation
- unchanged: nothing to do

An unterminated trailing line is carried over and completed on a later poll.
"""

import os
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from logwatcher.errors import RotationRecoveryError, TailIOError

log = structlog.get_logger()

ROTATION_SETTLE_SECONDS = 1.0

# An unterminated line longer than this is emitted as-is rather than buffered
MAX_PARTIAL_BYTES = 1024 * 1024


class TailPhase(Enum):
    """Lifecycle of a Tailer."""

    INITIAL = "initial"
    POLLING = "polling"
    ROTATION_DETECTED = "rotation_detected"
    ERROR = "error"


@dataclass
class TailState:
    """Mutable position of one watched file. Owned by a single worker."""

    path: Path
    offset: int = 0
    partial: bytes = b""
    inode: int | None = None
    phase: TailPhase = TailPhase.INITIAL


@dataclass(frozen=True)
class PollResult:
    """Outcome of a single poll."""

    lines: list[str] = field(default_factory=list)
    rotated: bool = False


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").strip()


class Tailer:
    """Incrementally reads new lines appended to one file."""

    def __init__(self, path: str | Path, buffer_size: int = 8192):
        self.state = TailState(path=Path(path))
        self.buffer_size = buffer_size

    @property
    def path(self) -> Path:
        return self.state.path

    @property
    def offset(self) -> int:
        return self.state.offset

    @property
    def phase(self) -> TailPhase:
        return self.state.phase

    def _fail(self, message: str, cause: OSError) -> TailIOError:
        self.state.phase = TailPhase.ERROR
        detail = cause.strerror or str(cause)
        return TailIOError(self.state.path, f"{message}: {detail}")

    def _stat(self) -> os.stat_result:
        try:
            return os.stat(self.state.path)
        except OSError as e:
            raise self._fail("Failed to get file metadata", e) from e

    def start(self) -> None:
        """Begin tailing at the current end of file (existing content is skipped)."""
        st = self._stat()
        self.state.offset = st.st_size
        self.state.inode = st.st_ino
        self.state.partial = b""
        self.state.phase = TailPhase.POLLING
        log.debug("Tail started", path=str(self.state.path), offset=st.st_size)

    def poll(self) -> PollResult:
        """Check the file once and return any new complete lines.

        Raises:
            TailIOError: the file cannot be stat'ed, opened or read
        """
        if self.state.phase is TailPhase.INITIAL:
            self.start()
            return PollResult()
        if self.state.phase is TailPhase.ROTATION_DETECTED:
            return PollResult(rotated=True)
        if self.state.phase is TailPhase.ERROR:
            raise TailIOError(self.state.path, "Tailer stopped after an earlier error")

        try:
            st = os.stat(self.state.path)
        except FileNotFoundError:
            # Renamed away and not yet recreated; recover() decides if it is gone
            return self._rotated(size=None, replaced=True)
        except OSError as e:
            raise self._fail("Failed to get file metadata", e) from e

        replaced = self.state.inode is not None and st.st_ino != self.state.inode
        if st.st_size < self.state.offset or replaced:
            return self._rotated(size=st.st_size, replaced=replaced)

        if st.st_size == self.state.offset:
            return PollResult()

        data = self._read_range(self.state.offset, st.st_size)
        self.state.offset += len(data)
        return PollResult(lines=self._split_lines(data))

    def _rotated(self, size: int | None, replaced: bool) -> PollResult:
        self.state.phase = TailPhase.ROTATION_DETECTED
        log.info(
            "File rotation detected",
            path=str(self.state.path),
            offset=self.state.offset,
            size=size,
            replaced=replaced,
        )
        return PollResult(rotated=True)

    def _read_range(self, start: int, end: int) -> bytes:
        chunks: list[bytes] = []
        remaining = end - start
        try:
            with open(self.state.path, "rb", buffering=self.buffer_size) as f:
                f.seek(start)
                while remaining > 0:
                    chunk = f.read(min(self.buffer_size, remaining))
                    if not chunk:
                        break
                    chunks.append(chunk)
                    remaining -= len(chunk)
        except OSError as e:
            raise self._fail("Failed to read file", e) from e
        return b"".join(chunks)

    def _split_lines(self, data: bytes) -> list[str]:
        pieces = (self.state.partial + data).split(b"\n")
        self.state.partial = pieces.pop()

        lines = []
        for raw in pieces:
            line = _decode(raw)
            if line:
                lines.append(line)

        if len(self.state.partial) > MAX_PARTIAL_BYTES:
            line = _decode(self.state.partial)
            self.state.partial = b""
            if line:
                lines.append(line)

        return lines

    def recover(
        self,
        settle_delay: float = ROTATION_SETTLE_SECONDS,
        wait: Callable[[float], Any] = time.sleep,
    ) -> None:
        """Wait for a rotated file to reappear and restart from offset 0.

        Args:
            settle_delay: Seconds to wait before probing the path again
            wait: Sleep function (a stop event's wait() allows cancellation)

        Raises:
            RotationRecoveryError: the file did not come back
        """
        wait(settle_delay)

        if not self.state.path.exists():
            self.state.phase = TailPhase.ERROR
            raise RotationRecoveryError(self.state.path, "File not found after rotation")

        st = self._stat()
        self.state.offset = 0
        self.state.partial = b""
        self.state.inode = st.st_ino
        self.state.phase = TailPhase.POLLING
        log.info("File reopened after rotation", path=str(self.state.path), size=st.st_size)


def read_lines(path: str | Path, buffer_size: int = 8192) -> Iterator[str]:
    """Read a whole file from the beginning, one line at a time (dry-run path).

    Raises:
        TailIOError: the file cannot be opened or read
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8", errors="replace", buffering=buffer_size) as f:
            for line in f:
                yield line.rstrip("\r\n")
    except OSError as e:
        raise TailIOError(path, e.strerror or str(e)) from e
