"""HTTP endpoint serving Prometheus metrics and watcher health."""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)

StartResponse = Callable[[str, list[tuple[str, str]]], Any]
HealthCheck = Callable[[], dict[str, Any]]


class _QuietHandler(WSGIRequestHandler):
    """WSGI handler that doesn't log every request."""

    def log_message(self, format: str, *args: object) -> None:
        pass


def make_metrics_app(health: HealthCheck | None = None) -> Callable[..., list[bytes]]:
    """Build the WSGI app behind the metrics server.

    Args:
        health: Returns watcher status for /health. A falsy "healthy"
            key turns the response into a 503.
    """

    def app(environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
        path = environ.get("PATH_INFO", "/")

        if path == "/metrics":
            start_response("200 OK", [("Content-Type", CONTENT_TYPE_LATEST)])
            return [generate_latest(REGISTRY)]

        if path == "/health":
            status = health() if health is not None else {}
            healthy = status.get("healthy", True)
            body = json.dumps({"status": "ok" if healthy else "degraded", **status})
            start_response(
                "200 OK" if healthy else "503 Service Unavailable",
                [("Content-Type", "application/json")],
            )
            return [body.encode()]

        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"Not Found"]

    return app


class MetricsServer:
    """Background HTTP server for /metrics and /health."""

    def __init__(self, server: WSGIServer):
        self._server = server
        self._thread = threading.Thread(
            target=self._serve, name="metrics-server", daemon=True
        )

    @property
    def port(self) -> int:
        return self._server.server_port

    def _serve(self) -> None:
        try:
            self._server.serve_forever()
        except Exception:
            logger.exception("Metrics server failed unexpectedly")

    def start(self) -> None:
        self._thread.start()
        logger.info("Metrics server listening on port %d", self.port)

    def stop(self, timeout: float | None = 1.0) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout)


def start_metrics_server(
    port: int = 9108, host: str = "127.0.0.1", health: HealthCheck | None = None
) -> MetricsServer:
    """Bind and start the metrics server. Port 0 picks a free port.

    Raises:
        OSError: the port cannot be bound
    """
    server = make_server(host, port, make_metrics_app(health), handler_class=_QuietHandler)
    metrics_server = MetricsServer(server)
    metrics_server.start()
    return metrics_server
