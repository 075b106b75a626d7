"""Structured logging configuration using structlog.

Console output for interactive use, JSON for log collection. Log lines go to
stderr so the console driver's stdout only carries banner and roster text.
All logging throughout the project should use get_logger() instead of print().
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog processors and the stdlib bridge.

    Args:
        json_output: If True, render JSON lines. If False, console format.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx logs each request through stdlib logging
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    logging.getLogger().handlers = []
    logging.getLogger().addHandler(logging.StreamHandler(sys.stderr))
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


@contextmanager
def action_context(action: str, activity: str) -> Iterator[None]:
    """Bind the running gated action to every log line emitted inside it.

    Context variables are per asyncio task, so interleaved actions keep
    their own bindings.
    """
    with structlog.contextvars.bound_contextvars(action=action, activity=activity):
        yield


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
