"""LogWatcher: ties tailers, matcher, output and notifier together."""

import queue
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog

from logwatcher.alerter import Notifier, NotifyOutcome
from logwatcher.errors import TailIOError
from logwatcher.metrics import (
    FILE_ERRORS,
    FILES_WATCHED,
    LINES_PROCESSED,
    MATCHES,
    NOTIFICATIONS,
    ROTATIONS,
)
from logwatcher.rules import Matcher, RuleSet
from logwatcher.utils import get_filename
from logwatcher.watcher.events import FileError, FileEvent, FileReopened, FileRotated, LineEvent
from logwatcher.watcher.output import OutputSink, WatcherStats
from logwatcher.watcher.tailer import ROTATION_SETTLE_SECONDS, read_lines
from logwatcher.watcher.worker import WorkerRegistry

log = structlog.get_logger()

EVENT_QUEUE_SIZE = 100

# How often the consumer wakes up to check for shutdown
_RECEIVE_TIMEOUT = 0.1


class LogWatcher:
    """Watches files and routes every new line through matcher, output and notifier.

    Tail mode runs one worker thread per file. All workers feed a single
    bounded queue, drained on the thread that calls run(), so output,
    notifications and stats are only ever touched from one place.
    """

    def __init__(
        self,
        ruleset: RuleSet,
        files: Sequence[Path],
        output: OutputSink,
        notifier: Notifier | None = None,
        dry_run: bool = False,
        settle_delay: float = ROTATION_SETTLE_SECONDS,
        queue_size: int = EVENT_QUEUE_SIZE,
    ):
        """Initialize the watcher.

        Args:
            ruleset: Compiled match rules
            files: Files to watch (already validated as readable)
            output: Where lines and status messages are printed
            notifier: Alert dispatcher; None disables notifications
            dry_run: Scan existing content once instead of tailing
            settle_delay: Seconds to wait for a rotated file to reappear
            queue_size: Capacity of the worker -> consumer event queue
        """
        self.ruleset = ruleset
        self.files = list(files)
        self.output = output
        self.notifier = notifier
        self.dry_run = dry_run
        self.matcher = Matcher(ruleset)
        self.stats = WatcherStats()

        self.events: queue.Queue[FileEvent] = queue.Queue(maxsize=queue_size)
        self.registry = WorkerRegistry(
            self.events,
            poll_interval=ruleset.poll_interval,
            buffer_size=ruleset.read_buffer_size,
            settle_delay=settle_delay,
        )
        self._stop_event = threading.Event()

    def run(self) -> WatcherStats:
        """Run until every file is done (dry-run) or stop() is called (tail mode)."""
        self.output.print_startup_info(len(self.files), self.ruleset, self.dry_run)

        if self.dry_run:
            self.run_dry_mode()
        else:
            self.run_tail_mode()

        self.output.print_shutdown_summary(self.stats)
        log.info("Watcher finished", **self.stats.summary())
        return self.stats

    def stop(self) -> None:
        """Ask the consumer loop and every worker to finish."""
        self._stop_event.set()
        self.registry.stop_all()

    def health(self) -> dict[str, Any]:
        """Status reported by the metrics server's /health endpoint."""
        alive = self.registry.alive()
        return {
            "healthy": self.dry_run or bool(alive),
            "files_alive": [str(path) for path in alive],
            **self.stats.summary(),
        }

    # --- Dry-run mode ---

    def run_dry_mode(self) -> None:
        log.info("Running in dry-run mode", files=len(self.files))
        for path in self.files:
            try:
                self.scan_file(path)
            except TailIOError as e:
                FILE_ERRORS.labels(file=str(path)).inc()
                self.output.print_file_error(str(path), e.message)
            else:
                self.stats.files_watched += 1

        self.output.print_dry_run_summary(self.stats.pattern_counts)

    def scan_file(self, path: Path) -> None:
        """Classify every existing line of a file. No notifications are sent."""
        label = get_filename(path)
        for line in read_lines(path, buffer_size=self.ruleset.read_buffer_size):
            self.stats.lines_processed += 1
            LINES_PROCESSED.labels(file=label).inc()
            if self.matcher.should_exclude(line):
                continue

            result = self.matcher.classify(line)
            if not result.matched or result.pattern is None:
                continue

            self.stats.matches_found += 1
            self.stats.pattern_counts[result.pattern] += 1
            MATCHES.labels(pattern=result.pattern).inc()
            self.output.print_line(line, label, result, dry_run=True)

    # --- Tail mode ---

    def run_tail_mode(self) -> None:
        log.info("Running in tail mode", files=len(self.files))
        for path in self.files:
            try:
                self.registry.add(path)
            except TailIOError as e:
                FILE_ERRORS.labels(file=str(path)).inc()
                self.output.print_file_error(str(path), e.message)
        self.stats.files_watched = len(self.registry)
        FILES_WATCHED.set_function(lambda: len(self.registry.alive()))

        try:
            self._consume()
        except KeyboardInterrupt:
            log.info("Received shutdown signal")
        finally:
            self.stop()

        # Events queued by workers just before they exited
        while True:
            try:
                self.handle_event(self.events.get_nowait())
            except queue.Empty:
                break

    def _consume(self) -> None:
        while not self._stop_event.is_set():
            try:
                event = self.events.get(timeout=_RECEIVE_TIMEOUT)
            except queue.Empty:
                if not self.registry.alive():
                    log.info("No files left to watch")
                    return
                continue
            self.handle_event(event)

    def handle_event(self, event: FileEvent) -> None:
        if isinstance(event, LineEvent):
            self.process_line(event.path, event.line)
        elif isinstance(event, FileRotated):
            ROTATIONS.labels(file=str(event.path)).inc()
            self.output.print_file_rotation(str(event.path))
        elif isinstance(event, FileReopened):
            self.output.print_file_reopened(str(event.path))
        elif isinstance(event, FileError):
            FILE_ERRORS.labels(file=str(event.path)).inc()
            self.output.print_file_error(str(event.path), event.message)

    def process_line(self, path: Path, line: str) -> None:
        """Classify one tailed line, notify if needed, and print it."""
        label = get_filename(path)
        self.stats.lines_processed += 1
        LINES_PROCESSED.labels(file=label).inc()

        if self.matcher.should_exclude(line):
            return

        result = self.matcher.classify(line)
        if result.matched and result.pattern is not None:
            self.stats.matches_found += 1
            self.stats.pattern_counts[result.pattern] += 1
            MATCHES.labels(pattern=result.pattern).inc()

            if result.should_notify and self.notifier is not None:
                outcome = self.notifier.maybe_notify(result.pattern, line, label)
                NOTIFICATIONS.labels(outcome=outcome.value).inc()
                if outcome is NotifyOutcome.SENT:
                    self.stats.notifications_sent += 1

        self.output.print_line(line, label, result, dry_run=False)
