"""Shared fixtures for logwatcher tests."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from logwatcher.errors import NotificationDispatchError
from logwatcher.rules import RuleSet, ruleset_from_dict


class RecordingSink:
    """Notification sink that remembers what it was asked to send."""

    name = "recording"

    def __init__(self, fail: bool = False):
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    def send(self, title: str, body: str) -> None:
        if self.fail:
            raise NotificationDispatchError("sink unavailable")
        self.sent.append((title, body))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() calls made by CLI tests."""
    yield
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def make_ruleset() -> Callable[..., RuleSet]:
    def _make(**rules: object) -> RuleSet:
        return ruleset_from_dict(rules)

    return _make


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def write_lines() -> Callable[..., None]:
    def _write(path: Path, lines: list[str], mode: str = "a") -> None:
        with open(path, mode, encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

    return _write


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)
