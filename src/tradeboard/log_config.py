"""Structured logging setup.

Development gets human-readable console lines, everything else JSON
lines on stdout for log aggregation. Event names follow the
`<area>.<event>` convention used across the codebase, e.g.
`client.created` or `auth.token_expired`.
"""

import logging
import sys

import structlog

from tradeboard.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog (and the stdlib root logger it writes through)."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    log_format = settings.log_format or (
        "console" if settings.environment == "development" else "json"
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
