"""Tests for the metrics endpoint."""

import json

import httpx

from logwatcher.metrics import MATCHES, make_metrics_app, start_metrics_server
from logwatcher.watcher import LogWatcher, OutputSink


def call(app, path):
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app({"PATH_INFO": path}, start_response))
    return captured["status"], captured["headers"], body


class TestMetricsApp:
    """Tests for the WSGI app."""

    def test_metrics(self):
        MATCHES.labels(pattern="ERROR").inc()
        status, headers, body = call(make_metrics_app(), "/metrics")
        assert status == "200 OK"
        assert headers["Content-Type"].startswith("text/plain")
        assert b'logwatcher_matches_total{pattern="ERROR"}' in body

    def test_health_without_check(self):
        status, _, body = call(make_metrics_app(), "/health")
        assert status == "200 OK"
        assert json.loads(body) == {"status": "ok"}

    def test_health_degraded(self):
        app = make_metrics_app(lambda: {"healthy": False, "files_alive": []})
        status, _, body = call(app, "/health")
        assert status == "503 Service Unavailable"
        assert json.loads(body)["status"] == "degraded"

    def test_unknown_path(self):
        status, _, _ = call(make_metrics_app(), "/nope")
        assert status == "404 Not Found"


class TestWatcherHealth:
    """Tests for the status a watcher reports."""

    def test_tail_mode_without_workers_is_unhealthy(self, make_ruleset, tmp_path):
        watcher = LogWatcher(make_ruleset(), [tmp_path / "app.log"], OutputSink())
        health = watcher.health()
        assert health["healthy"] is False
        assert health["files_alive"] == []
        assert health["lines_processed"] == 0

    def test_alive_worker_is_healthy(self, make_ruleset, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("")
        watcher = LogWatcher(make_ruleset(), [path], OutputSink())
        watcher.registry.add(path)
        try:
            health = watcher.health()
        finally:
            watcher.stop()
        assert health["healthy"] is True
        assert health["files_alive"] == [str(path)]


class TestMetricsServer:
    """Tests for the background HTTP server."""

    def test_serves_and_stops(self):
        server = start_metrics_server(port=0, health=lambda: {"files_alive": ["app.log"]})
        try:
            response = httpx.get(f"http://127.0.0.1:{server.port}/health", timeout=5, trust_env=False)
        finally:
            server.stop()

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "files_alive": ["app.log"]}
