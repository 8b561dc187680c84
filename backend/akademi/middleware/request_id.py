"""
Akademi Backend — Request ID Middleware
=========================================

What:  Gives every request a correlation ID and echoes it in X-Request-ID.
How:   A client-supplied X-Request-ID is reused when it is a short token of
       letters, digits, '.', '_' or '-' (the front end forwards its own IDs).
       Anything else is replaced by a fresh 8-character hex ID, so arbitrary
       header text never reaches the access log.

The ID lives in two places:
    request_id_var        read by loggers and exception handlers inside the stack
    request.state         read by the catch-all 500 handler, which runs outside
                          this middleware where the ContextVar is not visible
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}\Z")


def resolve_request_id(supplied: Optional[str]) -> str:
    """Reuse an acceptable client ID, otherwise generate one."""
    if supplied and _CLIENT_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
