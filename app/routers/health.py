# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# Readiness reflects the database connection state machine.
# =============================================================================

from typing import Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from app import __version__
from core.models.connection import ConnectionStatus
from lib.utils import utc_now

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    database: Optional[ConnectionStatus] = None
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=utc_now().isoformat(),
        environment=request.app.state.settings.ENVIRONMENT,
        version=__version__,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request, response: Response):
    """
    Readiness check endpoint.

    200 once the database connection is established, 503 while it is
    still connecting or after the bootstrap gave up.
    """
    supervisor = getattr(request.app.state, "connection", None)
    database = supervisor.status() if supervisor is not None else None
    ready = database is not None and database.is_ready

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if ready else "unavailable",
        database=database,
        timestamp=utc_now().isoformat(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    """
    return LivenessResponse(
        status="alive",
        timestamp=utc_now().isoformat(),
    )
