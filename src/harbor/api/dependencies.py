"""
API Dependencies

FastAPI dependencies resolving the per-process services stored on
app.state by the application factory.
"""

from fastapi import HTTPException, Request, status

from harbor.config.settings import Settings
from harbor.errors import SessionNotFound
from harbor.services.resources.catalog import ResourceCatalog
from harbor.services.session.session_service import CrisisSessionService
from harbor.services.session.state_machine import CrisisSession


def get_session_service(request: Request) -> CrisisSessionService:
    """Session service owned by the running application."""
    return request.app.state.session_service


def get_catalog(request: Request) -> ResourceCatalog:
    return request.app.state.session_service.catalog


def require_session(service: CrisisSessionService, session_id: str) -> CrisisSession:
    """Get a live session or raise 404."""
    try:
        return service.get_session(session_id)
    except SessionNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found ({e.reason})",
        ) from e


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings
