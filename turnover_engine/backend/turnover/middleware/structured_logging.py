# backend/turnover/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("turnover.request")


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One access line per request, rendered by JsonFormatter.

    The request id is picked up from the ContextVar that RequestIdMiddleware
    sets, so this middleware must sit inside it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            log.log(
                _level_for(status_code),
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                status_code,
                elapsed_ms,
                extra={
                    "event": "http_request",
                    "http": {
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": status_code,
                        "latency_ms": elapsed_ms,
                    },
                },
            )
