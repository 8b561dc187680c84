"""
Akademi Backend — Readiness Gate Middleware
=============================================

What:  Holds back every request until the document store is connected.
How:   Calls MongoStore.ensure_connection() before handing the request on. The
       first request after startup (or after a failed attempt) performs the
       connect; later requests return immediately with the memoized handles.
       When the store cannot be reached the request is answered with 503 and
       the handler is never invoked.
Who:   Applied to every request via Starlette middleware.

Probe paths (/health, /diag and the API docs) bypass the gate so that
monitoring can observe a server whose store is down. CORS preflight requests
also bypass it.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from akademi.database import MongoStore
from akademi.exceptions import StoreUnavailableError
from akademi.middleware.request_id import request_id_var


class ReadinessMiddleware(BaseHTTPMiddleware):
    """
    Short-circuits with 503 while the store is unavailable.

    Response on an unavailable store:
        HTTP 503 Service Unavailable
        Retry-After header
        {"error": "service_unavailable", "message": ..., "details": {...}, "request_id": ...}
    """

    EXEMPT_PATHS = {"/health", "/diag", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app: ASGIApp, store: MongoStore):
        super().__init__(app)
        self.store = store

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        try:
            await self.store.ensure_connection()
        except StoreUnavailableError as exc:
            request.state.rejection = f"store unavailable ({self.store.last_error or 'not connected'})"
            return JSONResponse(
                status_code=503,
                content={
                    "error": "service_unavailable",
                    "message": exc.message,
                    "details": {
                        "retryable": True,
                        "retry_after": exc.retry_after,
                        "diagnostics": "/diag",
                    },
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
