"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from harbor.api.v1.endpoints.health import router as health_router
from harbor.api.v1.endpoints.resources import router as resources_router
from harbor.api.v1.endpoints.resources import safety_plan_router
from harbor.api.v1.endpoints.sessions import router as sessions_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    sessions_router,
    prefix="/sessions",
    tags=["Sessions"],
)

api_router.include_router(
    resources_router,
    prefix="/resources",
    tags=["Resources"],
)

api_router.include_router(
    safety_plan_router,
    prefix="/safety-plans",
    tags=["Safety Plans"],
)
