"""Structured JSON logger for feishify.

Every log record is emitted as a single-line JSON object so conversion
runs can be inspected by log tooling without additional parsing.

Typical structured output::

    {"ts": "2026-10-16T12:00:00.123456+00:00", "level": "DEBUG",
     "logger": "feishify.converter", "message": "markdown scanned",
     "mode": "tree", "blocks": 12, "duration_ms": 0.41}

Usage::

    from feishify.observability import get_logger

    log = get_logger("feishify.converter")
    log.debug("rendered", extra={"extra_fields": {"blocks": 3}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys: ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed via ``extra={"extra_fields": {...}}`` are
    merged into the top-level object; ``exc_info`` and ``stack_info`` are
    serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


# One handler per logger name so that ``get_logger`` is idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "feishify",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"feishify"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.  Only
        applied the first time *name* is configured.  The converters log at
        ``DEBUG``, so the default keeps them quiet.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and do
        not add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        logger.propagate = False

        _configured_loggers.add(name)

    return logger
