"""
Akademi Backend — Access Log Middleware
=========================================

What:  One access-log line per API request: method, path, status, duration,
       request ID and, for rejected requests, why the request was turned away.
How:   Gates further down the stack record their reason in
       `request.state.rejection` before answering:
         - readiness gate (503): the store's last connection error
         - role gates (403):     the caller's stored role and the roles required
       The line is appended with that reason so a 503 or 403 in the log can be
       explained without cross-referencing other log lines.

Probe and documentation paths are not logged: monitors poll /health and /diag
constantly, and they are the same paths the readiness gate exempts.

Levels:
    503            WARNING   (store still connecting; the client retries)
    other 5xx      ERROR
    4xx            WARNING
    otherwise      INFO

Request bodies and the `email` query parameter are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from akademi.middleware.readiness import ReadinessMiddleware
from akademi.middleware.request_id import request_id_var

logger = logging.getLogger("akademi.access")

UNLOGGED_PATHS = ReadinessMiddleware.EXEMPT_PATHS


def access_log_level(status: int) -> int:
    if status == 503:
        return logging.WARNING
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log for everything except the probe set."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        message = "%s %s %d %.1fms [%s]"
        args = [
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get("") or getattr(request.state, "request_id", ""),
        ]
        rejection = getattr(request.state, "rejection", None)
        if rejection:
            message += " rejected: %s"
            args.append(rejection)

        logger.log(access_log_level(response.status_code), message, *args)
        return response
