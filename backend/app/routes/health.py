"""
DevCamper Backend — Health Check Route
========================================

What:  Liveness/readiness probe for load balancers and container health checks.

Status levels:
    - healthy:   database reachable and geocoder configured (HTTP 200)
    - degraded:  database reachable, geocoder key missing (HTTP 200);
                 bootcamp creation and radius search will fail
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app import __version__
from app.database import get_db_session
from app.dependencies import get_geocoder
from app.schemas.common import HealthResponse
from app.services.geo_service import Geocoder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    geocoder: Geocoder = Depends(get_geocoder),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)
        await db.rollback()

    geocoder_status = "configured" if geocoder.is_configured else "not_configured"
    if overall == "healthy" and not geocoder.is_configured:
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        geocoder=geocoder_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
