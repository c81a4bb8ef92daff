"""Structured logging for logwatcher.

Diagnostics go to stderr through structlog; stdout is reserved for the
watched lines themselves. Records from third-party libraries (httpx, the
metrics server) are routed through the same formatter.
"""

import logging
import sys
from pathlib import Path
from typing import cast

import structlog

LOG_FORMATS = ("auto", "console", "json")

# Libraries that log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def _use_json(log_format: str) -> bool:
    if log_format == "json":
        return True
    if log_format == "console":
        return False
    return not sys.stderr.isatty()


def configure_logging(level: str = "WARNING", log_format: str = "auto") -> None:
    """Install the structlog pipeline on the root logger.

    Args:
        level: Log level name; unknown names fall back to WARNING
        log_format: 'console', 'json', or 'auto' (console on a TTY)
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor
    if _use_json(log_format):
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processor=renderer)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def bind_file_context(path: Path) -> None:
    """Tag every log entry from the current thread with the file it tails."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(file=str(path))


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    return cast(structlog.BoundLogger, structlog.get_logger(name))
