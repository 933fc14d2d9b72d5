# backend/turnover/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied ids are echoed into logs and headers; keep them short and inert.
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def resolve_request_id(incoming: Optional[str]) -> str:
    """Caller's id when it is a safe token, otherwise a fresh uuid4 hex."""
    rid = (incoming or "").strip()
    return rid if _SAFE_ID.match(rid) else uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id, exposes it on request.state and the
    request_id ContextVar (read by JsonFormatter), and returns it in the
    X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid
        token = request_id_ctx.set(rid)
        try:
            resp = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        resp.headers[REQUEST_ID_HEADER] = rid
        return resp
