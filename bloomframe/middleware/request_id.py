"""
BloomFrame Backend — Request ID Middleware
============================================

What:  Tags every request with a short ID that shows up in the access log,
       error envelopes and the X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused when it is a plain token
       (letters, digits, "-", "_", ".", at most 64 characters); anything
       else is replaced with a fresh 8-character ID, since the value is
       echoed into headers and log lines. The ID is kept in a ContextVar so
       loggers and exception handlers can read it without the request.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,64}")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(incoming: Optional[str]) -> str:
    """Returns the client's ID when it is safe to echo, else a new one."""
    candidate = (incoming or "").strip()
    if REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return new_request_id()


def current_request_id() -> str:
    return request_id_var.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid

        request_id_var.set(rid)
        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
