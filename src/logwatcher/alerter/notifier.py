"""Rate-limited notifications for matched lines."""

from enum import Enum
from typing import Protocol

import structlog

from logwatcher.alerter.throttle import ThrottleWindow
from logwatcher.errors import NotificationDispatchError
from logwatcher.rules.ruleset import RuleSet

log = structlog.get_logger()

MAX_BODY_LENGTH = 200
THROTTLE_WINDOW_SECONDS = 1.0


class NotificationSink(Protocol):
    """Anything that can deliver a (title, body) alert."""

    name: str

    def send(self, title: str, body: str) -> None: ...


class NotifyOutcome(Enum):
    """What happened to a notification attempt."""

    SENT = "sent"
    SUPPRESSED = "suppressed"  # Disabled, not eligible, or throttled
    ERROR = "error"  # Sink failed; logged, not fatal


def truncate_body(line: str, limit: int = MAX_BODY_LENGTH) -> str:
    """Shorten a line to at most `limit` characters, ending in '...' when cut."""
    if len(line) <= limit:
        return line
    return line[: limit - 3] + "..."


def notification_title(pattern: str, source_label: str | None = None) -> str:
    if source_label:
        return f"{pattern} detected in {source_label}"
    return f"{pattern} detected"


class Notifier:
    """Sends alerts for notify-eligible matches, capped by a shared throttle."""

    def __init__(
        self,
        ruleset: RuleSet,
        sink: NotificationSink,
        throttle: ThrottleWindow | None = None,
    ):
        self.ruleset = ruleset
        self.sink = sink
        self.throttle = throttle or ThrottleWindow(
            ruleset.notify_throttle, window=THROTTLE_WINDOW_SECONDS
        )

    @property
    def enabled(self) -> bool:
        return self.ruleset.notify_enabled

    def maybe_notify(
        self, pattern: str, line: str, source_label: str | None = None
    ) -> NotifyOutcome:
        """Send a notification if the pattern is eligible and the throttle allows.

        Args:
            pattern: The pattern that matched
            line: The matched log line
            source_label: File name shown in the title, if any

        Returns:
            SENT, SUPPRESSED (silently skipped) or ERROR (sink failure, logged)
        """
        if not self.ruleset.should_notify_for(pattern):
            return NotifyOutcome.SUPPRESSED

        if not self.throttle.try_acquire():
            log.debug(
                "Notification throttled",
                pattern=pattern,
                source=source_label,
                retry_in=self.throttle.time_until_slot(),
            )
            return NotifyOutcome.SUPPRESSED

        return self._dispatch(notification_title(pattern, source_label), truncate_body(line))

    def _dispatch(self, title: str, body: str) -> NotifyOutcome:
        try:
            self.sink.send(title, body)
        except NotificationDispatchError as e:
            log.warning("Notification dispatch failed", sink=self.sink.name, error=str(e))
            return NotifyOutcome.ERROR

        log.debug("Notification sent", sink=self.sink.name, title=title)
        return NotifyOutcome.SENT

    def send_test(self) -> NotifyOutcome:
        """Send a test notification, bypassing eligibility and throttling."""
        return self._dispatch(
            notification_title("TEST", "test.log"), "LogWatcher notification test"
        )
