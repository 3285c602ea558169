"""Logging helpers shared by both services.

Every module obtains its logger through :func:`get_logger`.  Records carry a
``correlation_id`` attribute so the request that produced a line can be traced
across the user service and the AI service; call sites supply it through
``extra={"correlation_id": ...}`` and records without one render as ``-``.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

_ROOT_LOGGER_NAME = "usersense"


class CorrelationIdFilter(logging.Filter):
    """Ensure every record has a ``correlation_id`` attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = "-"
        return True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger (thin wrapper so handlers are configured in one place)."""
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install a single stream handler on the package logger.

    Safe to call more than once: an existing handler is reused and only the
    level is updated.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())

    if not any(getattr(h, "_usersense", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter())
        handler._usersense = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
