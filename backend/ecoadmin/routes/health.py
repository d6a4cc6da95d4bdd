"""
EcoAdmin Backend: Health Check Route
=====================================

What:  Liveness plus a record-store probe, for Docker health checks and load
       balancers.
How:   Runs SELECT 1 through the application's engine. A reachable store
       answers 200; an unreachable one answers 503 with the same body, so
       probes can route traffic away without parsing it.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ecoadmin import __version__
from ecoadmin.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Record store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    settings = request.app.state.settings
    database = request.app.state.database

    connected = await database.ping()
    if not connected:
        logger.warning("Health check: record store unreachable")

    health = HealthResponse(
        success=connected,
        message="EcoAdmin backend is running" if connected else "Record store unreachable",
        version=__version__,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
        database="connected" if connected else "disconnected",
        uploads_dir=str(request.app.state.image_service.storage_root),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=health.model_dump(mode="json", by_alias=True),
    )
