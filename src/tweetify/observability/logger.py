"""Structured JSON logging for tweetify.

Each record becomes one JSON line.  Structured fields are passed through
``extra={"extra_fields": {...}}`` and are redacted with
:func:`tweetify.utils.redact.redact` before serialisation, so credentials
and base64 segment bodies never reach a log sink::

    {"ts": "2026-01-05T12:00:00.123456+00:00", "level": "INFO",
     "logger": "tweetify.upload", "message": "APPEND finished",
     "op": "append", "media_id": "7105", "segment_index": 2}

Loggers below ``tweetify`` (``tweetify.upload``, ``tweetify.transport``,
...) share the single handler installed on the package logger.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from tweetify.errors import error_code
from tweetify.utils.redact import redact

PACKAGE_LOGGER = "tweetify"


class StructuredFormatter(logging.Formatter):
    """Render records as single-line JSON.

    Always present: ``ts`` (UTC, ISO-8601), ``level``, ``logger``,
    ``message``.  A logged exception adds ``exception`` and ``error_code``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            entry.update(redact(fields))

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
            entry.setdefault("error_code", error_code(record.exc_info[1]))

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


_configured: set[str] = set()


def get_logger(
    name: str = PACKAGE_LOGGER,
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger whose records are written as JSON lines.

    For ``tweetify`` and its children the handler lives on the package
    logger; any other *name* gets its own handler.  *level* and *stream*
    only take effect the first time that handler is installed.
    """
    owner = PACKAGE_LOGGER if name.split(".")[0] == PACKAGE_LOGGER else name

    if owner not in _configured:
        target = logging.getLogger(owner)
        target.setLevel(logging.getLevelName(level.upper()) if isinstance(level, str) else level)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        target.addHandler(handler)
        target.propagate = False
        _configured.add(owner)

    return logging.getLogger(name)
