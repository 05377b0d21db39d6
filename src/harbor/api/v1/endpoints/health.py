"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from harbor import __version__
from harbor.api.dependencies import get_app_settings, get_session_service
from harbor.config.logging_config import get_logger
from harbor.config.settings import Settings
from harbor.infrastructure.database import get_db_manager
from harbor.services.session.session_service import CrisisSessionService

logger = get_logger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns 200 if application is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Detailed readiness check including all components",
)
async def readiness_check(
    service: CrisisSessionService = Depends(get_session_service),
    settings: Settings = Depends(get_app_settings),
) -> ReadinessResponse:
    """
    Detailed readiness check.

    Checks:
    - Offline crisis resources (required)
    - Persistence connectivity and local buffer depth
    - Database, when it is the persistence backend

    A down database does not make the service unready; records are
    buffered and replayed.
    """
    components: dict = {
        "offline_resources": service.catalog.is_available_offline(),
        "persistence_online": service.persistence.online,
        "persistence_buffered": service.persistence.buffered_count,
        "active_sessions": service.active_count,
    }

    if settings.persistence.backend == "database":
        db = get_db_manager()
        components["database"] = db.is_initialized and await db.health_check()
        if not components["database"]:
            logger.warning("Readiness: database unavailable")

    return ReadinessResponse(
        ready=components["offline_resources"],
        components=components,
    )
