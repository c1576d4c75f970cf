"""Logging configuration for the business_time library."""

import logging
import time
from contextlib import contextmanager
from typing import Generator

import structlog

LOGGER_NAME = "business_time"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_logger(name: str | None = None, **initial_values: object) -> structlog.BoundLogger:
    """Get a structlog logger carrying its module name as ``logger``.

    The logger stays lazy, so it picks up configuration done after it was created.
    """
    return structlog.get_logger(name, logger=name or LOGGER_NAME, **initial_values)


def _resolve_level(level: str) -> int:
    name = level.upper()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {_LEVELS}")
    return getattr(logging, name)


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
) -> None:
    """Configure business_time logging.

    At the default WARNING level only iteration ceiling failures are reported;
    DEBUG adds one event per calculation.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        json_output: True for JSON output (production), False for console

    Raises:
        ValueError: If level is not a known level name
    """
    numeric_level = _resolve_level(level)
    logging.basicConfig(format="%(message)s", level=numeric_level)

    shared_processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@contextmanager
def timed_block(
    logger: structlog.BoundLogger,
    event: str,
    level: str = "debug",
    **fields: object,
) -> Generator[None, None, None]:
    """Log event with elapsed_ms once the block exits, even on error."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        getattr(logger, level)(event, elapsed_ms=round(elapsed_ms, 2), **fields)
