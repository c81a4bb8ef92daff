"""File tailing with rotation recovery, and the watcher that drives it."""

from .daemon import LogWatcher
from .events import FileError, FileEvent, FileReopened, FileRotated, LineEvent
from .output import OutputSink, WatcherStats
from .tailer import ROTATION_SETTLE_SECONDS, PollResult, Tailer, TailPhase, TailState, read_lines
from .worker import TailWorker, WorkerRegistry

__all__ = [
    # Watcher
    "LogWatcher",
    "OutputSink",
    "WatcherStats",
    # Tailing
    "Tailer",
    "TailState",
    "TailPhase",
    "PollResult",
    "read_lines",
    "ROTATION_SETTLE_SECONDS",
    "TailWorker",
    "WorkerRegistry",
    # Events
    "FileEvent",
    "LineEvent",
    "FileRotated",
    "FileReopened",
    "FileError",
]
