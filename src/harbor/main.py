"""
HARBOR FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- CORS configuration
- Error handling middleware
- Router registration (REST, WebSocket, metrics)

This is the production entry point for the HARBOR backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from harbor import __version__
from harbor.api.middleware.error_handler import ErrorHandlerMiddleware
from harbor.api.routes.session_stream import router as session_stream_router
from harbor.api.v1.router import api_router
from harbor.config import Settings, get_settings
from harbor.config.logging_config import configure_logging, get_logger
from harbor.infrastructure.database import get_db_manager
from harbor.infrastructure.metrics import metrics_router, update_system_info
from harbor.infrastructure.monitoring import init_sentry
from harbor.services.session.session_service import CrisisSessionService, build_dependencies

logger = get_logger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    service: Optional[CrisisSessionService] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings, loaded from the environment when omitted
        service: Pre-built session service (tests inject one with virtual timers)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.

        Handles startup and shutdown of all services.
        """
        logger.info(
            "Starting HARBOR application",
            env=settings.env,
            version=__version__,
            persistence=settings.persistence.backend,
        )

        init_sentry(
            dsn=settings.monitoring.sentry_dsn.get_secret_value(),
            environment=settings.env,
            traces_sample_rate=settings.monitoring.sentry_traces_sample_rate,
        )
        update_system_info(settings.env)

        use_database = settings.persistence.backend == "database"
        if use_database:
            await get_db_manager().initialize()
            logger.info("Database connection initialized")

        session_service = app.state.session_service
        if session_service is None:
            session_service = CrisisSessionService(build_dependencies(settings))
            app.state.session_service = session_service
        logger.info(
            "Crisis session service ready",
            offline_resources=session_service.catalog.is_available_offline(),
        )

        try:
            yield
        finally:
            # Shutdown
            logger.info("Shutting down HARBOR application")

            await session_service.shutdown()

            if use_database:
                await get_db_manager().close()

            logger.info("HARBOR application shutdown complete")

    app = FastAPI(
        title="HARBOR API",
        description="Crisis risk assessment and escalation engine - Backend API",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_service = service

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handling middleware
    app.add_middleware(ErrorHandlerMiddleware)

    # Register API routers
    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(session_stream_router)
    app.include_router(metrics_router)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "HARBOR API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "harbor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
