# backend/turnover/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Optional

from .middleware.request_id import get_request_id

# LogRecord attributes lifted into the JSON line when a caller passes them via extra=.
_EXTRA_KEYS = ("task_key", "application_id", "unit_id", "event", "data_source", "row", "http")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, request_id, extras, exc_info."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid

        payload.update({k: getattr(record, k) for k in _EXTRA_KEYS if hasattr(record, k)})

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> None:
    """
    Replace root handlers with a single JSON handler.

    level defaults to $LOG_LEVEL (INFO); stream defaults to stdout. The CLI
    passes stderr so its JSON output on stdout stays clean.
    """
    lvl = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    # The request line comes from StructuredLoggingMiddleware; uvicorn's access log would duplicate it.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
