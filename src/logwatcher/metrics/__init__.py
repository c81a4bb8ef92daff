"""Prometheus metrics for logwatcher.

Usage:
    from logwatcher.metrics import start_metrics_server, MATCHES

    server = start_metrics_server(port=9108)
    MATCHES.labels(pattern="ERROR").inc()
    server.stop()
"""

from logwatcher.metrics.server import MetricsServer, make_metrics_app, start_metrics_server
from logwatcher.metrics.watcher import (
    FILE_ERRORS,
    FILES_WATCHED,
    LINES_PROCESSED,
    MATCHES,
    NOTIFICATIONS,
    ROTATIONS,
)

__all__ = [
    "start_metrics_server",
    "make_metrics_app",
    "MetricsServer",
    "FILES_WATCHED",
    "LINES_PROCESSED",
    "MATCHES",
    "NOTIFICATIONS",
    "ROTATIONS",
    "FILE_ERRORS",
]
