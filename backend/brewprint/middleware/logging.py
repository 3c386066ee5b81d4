"""
Brewprint Backend — Request Logging Middleware
===============================================

What:  One access log line per request with status and duration.
How:   Wraps call_next, measures with perf_counter, picks the log level from
       the status class (5xx ERROR, 4xx WARNING, else INFO).
Who:   Applied to every request via Starlette middleware.

Structured fields (request_id, method, path, status, duration_ms, owner) are
passed through `extra`, so they ride on each LogRecord as attributes for any
handler or formatter to pick up. main.py configures a plain text format,
which prints only the message (everything above except owner).

Privacy:
    Request bodies are never logged: snapshots contain the user's whole
    library. The owner id is logged only as its presence, not its value.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from brewprint.middleware.request_id import request_id_var

logger = logging.getLogger("brewprint.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration for each HTTP request.

    Typical durations:
        - GET /health: 1-5ms
        - GET /api/recipes: 10-50ms
        - GET /api/backup/export: grows with library size (9 parallel reads)
        - POST /api/backup/import: sequential inserts, the slowest endpoint
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path

        # Health checks run every few seconds
        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        has_owner = bool(request.headers.get("X-Owner-ID"))

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s]",
            method,
            path,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "owner": has_owner,
            },
        )

        return response
