"""
Brewprint Backend — Request ID Middleware
==========================================

What:  Tags each request with a short correlation id and echoes it back.
How:   Reuses the client's X-Request-ID when present, otherwise generates one;
       stored in a ContextVar for loggers and exception handlers.
Who:   Applied to every request via Starlette middleware.

The mobile client sends its own X-Request-ID with import/export calls so a
failed restore reported by a user can be matched to the server log lines.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests share a thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns the request id and adds it to the response headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough to correlate log lines
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
