"""Background workers that poll tailers and feed the event queue."""

import queue
import threading
from pathlib import Path

import structlog

from logwatcher.errors import TailIOError
from logwatcher.logging import bind_file_context
from logwatcher.watcher.events import FileError, FileEvent, FileReopened, FileRotated, LineEvent
from logwatcher.watcher.tailer import ROTATION_SETTLE_SECONDS, Tailer

log = structlog.get_logger()

# How long a blocked put waits before re-checking for cancellation
_PUT_RETRY_SECONDS = 0.1


class TailWorker:
    """Runs one file's sleep-then-poll loop on its own thread."""

    def __init__(
        self,
        path: Path,
        events: "queue.Queue[FileEvent]",
        poll_interval: float,
        buffer_size: int = 8192,
        settle_delay: float = ROTATION_SETTLE_SECONDS,
    ):
        self.path = path
        self.events = events
        self.poll_interval = poll_interval
        self.settle_delay = settle_delay
        self.tailer = Tailer(path, buffer_size=buffer_size)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Record the current end of file and start polling.

        Raises:
            TailIOError: the file cannot be stat'ed
        """
        self.tailer.start()
        self._thread = threading.Thread(
            target=self._run, name=f"tail:{self.path.name}", daemon=True
        )
        self._thread.start()
        log.info("Started log tailer", path=str(self.path))

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _put(self, event: FileEvent) -> bool:
        """Blocking put that gives up once the worker is stopped."""
        while not self._stop_event.is_set():
            try:
                self.events.put(event, timeout=_PUT_RETRY_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _report_error(self, message: str) -> None:
        try:
            self.events.put_nowait(FileError(self.path, message))
        except queue.Full:
            log.warning("Event queue full, dropping file error", path=str(self.path), error=message)

    def _run(self) -> None:
        bind_file_context(self.path)
        try:
            self._poll_loop()
        except Exception as e:
            log.exception("Unexpected error tailing file")
            self._report_error(f"Unexpected error: {e}")

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                result = self.tailer.poll()
            except TailIOError as e:
                log.error("Tail failed", error=e.message)
                self._report_error(e.message)
                return

            if result.rotated:
                if not self._put(FileRotated(self.path)):
                    return
                try:
                    self.tailer.recover(self.settle_delay, wait=self._stop_event.wait)
                except TailIOError as e:
                    log.error("Rotation recovery failed", error=e.message)
                    self._report_error(e.message)
                    return
                if self._stop_event.is_set() or not self._put(FileReopened(self.path)):
                    return
                continue

            for line in result.lines:
                if not self._put(LineEvent(self.path, line)):
                    return


class WorkerRegistry:
    """Tracks one cancellable worker per watched file."""

    def __init__(
        self,
        events: "queue.Queue[FileEvent]",
        poll_interval: float,
        buffer_size: int = 8192,
        settle_delay: float = ROTATION_SETTLE_SECONDS,
    ):
        self.events = events
        self.poll_interval = poll_interval
        self.buffer_size = buffer_size
        self.settle_delay = settle_delay
        self._workers: dict[Path, TailWorker] = {}
        self._lock = threading.Lock()

    def add(self, path: Path) -> TailWorker:
        """Start tailing a file. Adding a file already watched returns its worker.

        Raises:
            TailIOError: the file cannot be stat'ed
        """
        with self._lock:
            existing = self._workers.get(path)
            if existing is not None and existing.is_alive():
                return existing

            worker = TailWorker(
                path,
                self.events,
                poll_interval=self.poll_interval,
                buffer_size=self.buffer_size,
                settle_delay=self.settle_delay,
            )
            worker.start()
            self._workers[path] = worker
            return worker

    def remove(self, path: Path, timeout: float | None = 1.0) -> bool:
        """Stop tailing a file. Returns False if it was not being watched."""
        with self._lock:
            worker = self._workers.pop(path, None)
        if worker is None:
            return False
        worker.stop()
        worker.join(timeout)
        log.info("Stopped log tailer", path=str(path))
        return True

    def alive(self) -> list[Path]:
        with self._lock:
            return [path for path, worker in self._workers.items() if worker.is_alive()]

    def stop_all(self, timeout: float | None = 1.0) -> None:
        with self._lock:
            workers = list(self._workers.values())
        for worker in workers:
            worker.stop()
        for worker in workers:
            worker.join(timeout)

    def __contains__(self, path: object) -> bool:
        return path in self._workers

    def __len__(self) -> int:
        return len(self._workers)
