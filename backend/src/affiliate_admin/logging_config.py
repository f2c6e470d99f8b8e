"""Logging configuration."""

import logging
import sys

import structlog

from affiliate_admin.settings import settings


def configure_logging(level: str | None = None, **context) -> None:
    """Configure structured logging for one CLI invocation.

    Log lines go to stderr so that command output on stdout stays parseable.
    Keyword arguments are bound to every log line of the invocation.
    """
    level = (level or settings.log_level).upper()

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if settings.log_format == "json":
        processors = shared + [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # The CLI can run several times in one process (tests), each with its own stderr
        cache_logger_on_first_use=False,
    )

    structlog.contextvars.clear_contextvars()
    if context:
        structlog.contextvars.bind_contextvars(**context)

    # SQLAlchemy logs through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=getattr(logging, level))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
