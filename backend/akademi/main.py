"""
Akademi Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds the store, services, middleware,
       exception handlers and routes around one Settings object.
Who:   Called by uvicorn to start the server (uvicorn akademi.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  CORS → Request ID → Logging → Readiness → GZip              │
    │                                                              │
    │  Routes:                                                     │
    │  users · scholarships · payments · /health · /diag           │
    │                                                              │
    │  Exception Handlers:                                         │
    │  StoreUnavailable→503 │ Validation→400 │ Authorization→403   │
    │  PaymentRejected→400  │ PaymentNotConfigured→500 │ DB→500    │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (log problems, keep serving probes)
    3. Try the first store connection; with REQUIRE_DB_ON_STARTUP a failure
       aborts startup, otherwise the next request retries

    Shutdown:
    1. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from akademi import __version__
from akademi.config import Settings, settings as default_settings
from akademi.database import ClientFactory, MongoStore
from akademi.exceptions import (
    AkademiError,
    AuthorizationError,
    DatabaseError,
    PaymentNotConfiguredError,
    PaymentRejectedError,
    StoreUnavailableError,
    ValidationError,
)
from akademi.middleware.logging import RequestLoggingMiddleware
from akademi.middleware.readiness import ReadinessMiddleware
from akademi.middleware.request_id import RequestIDMiddleware, request_id_var
from akademi.routes import health, payments, scholarships, users
from akademi.services.payment_service import PaymentService
from akademi.services.scholarship_service import ScholarshipService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Request IDs are added to individual messages by the middleware and
    exception handlers.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, config validation, first connection attempt.
    Shutdown: close the store.
    """
    config: Settings = app.state.settings
    store: MongoStore = app.state.store

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config)
    logger.info("=" * 60)
    logger.info("Akademi Backend %s starting up (env=%s)...", __version__, config.app_env)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Keep running: /health and /diag still explain what is missing
        logger.error("Configuration error: %s", str(e))

    if config.require_db_on_startup:
        await store.ensure_connection()
    else:
        try:
            await store.ensure_connection()
        except StoreUnavailableError:
            logger.warning("MongoDB not reachable at startup; requests will retry the connection")

    logger.info("Server ready at http://%s:%d", config.host, config.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Akademi Backend shutting down...")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(request: Request, status_code: int, error: str, message: str, details=None, headers=None):
    # The catch-all handler runs outside RequestIDMiddleware, where only request.state has the ID
    rid = request_id_var.get("") or getattr(request.state, "request_id", "")
    content = {"error": error, "message": message, "request_id": rid}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to HTTP responses.

    Handler hierarchy:
        StoreUnavailableError      → 503 Service Unavailable + Retry-After
        ValidationError            → 400 Bad Request (includes InvalidIdentifierError)
        AuthorizationError         → 403 Forbidden
        PaymentRejectedError       → 400 Bad Request (provider message verbatim)
        PaymentNotConfiguredError  → 500 Internal Server Error
        DatabaseError              → 500 Internal Server Error (generic message)
        AkademiError (base)        → 500 Internal Server Error
        Exception (fallback)       → 500 Internal Server Error

    Stack traces and driver messages are logged, never returned.
    """

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.warning("[%s] Store unavailable: %s", request_id_var.get(""), exc.message)
        return _error_response(
            request,
            503,
            "service_unavailable",
            exc.message,
            details={"retryable": True, "retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return _error_response(request, 403, "forbidden", exc.message, details=exc.context)

    @app.exception_handler(PaymentRejectedError)
    async def handle_payment_rejected(request: Request, exc: PaymentRejectedError):
        return _error_response(request, 400, "payment_rejected", exc.message, details=exc.context)

    @app.exception_handler(PaymentNotConfiguredError)
    async def handle_payment_not_configured(request: Request, exc: PaymentNotConfiguredError):
        logger.error("[%s] %s", request_id_var.get(""), exc.message)
        return _error_response(request, 500, "payments_not_configured", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(request, 500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(AkademiError)
    async def handle_application_error(request: Request, exc: AkademiError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            getattr(request.state, "request_id", ""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    client_factory: Optional[ClientFactory] = None,
    payment_service: Optional[PaymentService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use; defaults to the environment-loaded singleton.
        client_factory: builds the MongoDB client (tests pass a mock factory).
        payment_service: pre-built payment bridge (tests inject a mock Stripe client).

    Each app owns its store, so several apps (one per test) never share a
    connection.
    """
    config = config or default_settings

    app = FastAPI(
        title="Akademi Scholarship API",
        description=(
            "Scholarship catalogue, user registration with role-based administration, "
            "and Stripe payment intents for application fees."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    store = MongoStore(config, client_factory=client_factory)
    app.state.settings = config
    app.state.store = store
    app.state.scholarship_service = ScholarshipService(degraded_mode=config.degraded_mode)
    app.state.payment_service = payment_service or PaymentService(config.stripe_secret_key)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first. CORS is outermost so the gate's 503 responses
    # still carry CORS headers.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(ReadinessMiddleware, store=store)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(scholarships.router)
    app.include_router(payments.router)

    return app


# uvicorn imports `akademi.main:app`
app = create_app()
