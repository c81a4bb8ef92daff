"""Alerting for matched log lines.

Provides the shared notification throttle, the notifier, and its sinks.
"""

from .desktop import DesktopSink
from .discord import COLOR_ALERT, DiscordClient, DiscordSink
from .notifier import (
    MAX_BODY_LENGTH,
    NotificationSink,
    Notifier,
    NotifyOutcome,
    notification_title,
    truncate_body,
)
from .throttle import ThrottleWindow

__all__ = [
    # Notifier
    "Notifier",
    "NotifyOutcome",
    "NotificationSink",
    "notification_title",
    "truncate_body",
    "MAX_BODY_LENGTH",
    # Sinks
    "DesktopSink",
    "DiscordClient",
    "DiscordSink",
    "COLOR_ALERT",
    # Throttle
    "ThrottleWindow",
]
