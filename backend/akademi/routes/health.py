"""
Akademi Backend — Probe Routes
================================

What:  GET /health (liveness + connectivity flag) and GET /diag (environment
       and connectivity diagnostics).
How:   Both read the store's current state without connecting, so they stay
       fast and keep answering while the database is down. The readiness gate
       exempts both paths.
Who:   Load balancers, uptime monitors, and whoever is debugging a 503.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from akademi import __version__
from akademi.database import MongoStore
from akademi.dependencies import get_store
from akademi.schemas.common import DiagnosticsResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(store: MongoStore = Depends(get_store)) -> HealthResponse:
    return HealthResponse(
        status="Operational",
        database="Online" if store.is_connected else "Connecting",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/diag",
    response_model=DiagnosticsResponse,
    summary="Environment and connectivity diagnostics",
    description=(
        "Reports where the connection string comes from, whether the store is "
        "connected, the last connection error, and whether payments are configured. "
        "Secrets are never included."
    ),
)
async def diagnostics(
    request: Request,
    store: MongoStore = Depends(get_store),
) -> DiagnosticsResponse:
    settings = request.app.state.settings
    return DiagnosticsResponse(
        environment=settings.app_env,
        version=__version__,
        database=store.diagnostics(),
        payments={"configured": request.app.state.payment_service.configured},
        cors_origins=settings.cors_origins_list,
        degraded_mode=settings.degraded_mode,
    )
