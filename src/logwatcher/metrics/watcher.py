"""Prometheus metrics for logwatcher.

All metrics use the 'logwatcher_' prefix for consistency.
"""

from prometheus_client import Counter, Gauge

LINES_PROCESSED = Counter(
    "logwatcher_lines_processed_total",
    "Total lines read from watched files",
    ["file"],
)

MATCHES = Counter(
    "logwatcher_matches_total",
    "Total lines that matched a pattern",
    ["pattern"],
)

NOTIFICATIONS = Counter(
    "logwatcher_notifications_total",
    "Notification attempts by outcome",
    ["outcome"],  # outcome: sent, suppressed, error
)

ROTATIONS = Counter(
    "logwatcher_rotations_total",
    "File rotations detected",
    ["file"],
)

FILE_ERRORS = Counter(
    "logwatcher_file_errors_total",
    "Files whose tailing stopped on an error",
    ["file"],
)

FILES_WATCHED = Gauge(
    "logwatcher_files_watched",
    "Files currently being tailed",
)
