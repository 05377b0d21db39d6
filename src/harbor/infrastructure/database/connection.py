"""
Database Connection Management

Async PostgreSQL engine used by the database record store. The
engine is only created when persistence runs on the database
backend; the in-memory backend never touches this module at runtime.

SECURITY: Connection strings contain credentials and must
never be logged.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from harbor.config import get_settings
from harbor.config.logging_config import get_logger
from harbor.config.settings import DatabaseSettings

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the record tables."""


class DatabaseManager:
    """
    Owns the engine and hands out transactional sessions.

    Usage:
        db = DatabaseManager(settings.database)
        await db.initialize()
        async with db.session() as session:
            await AssessmentRepository(session).upsert(row)
        await db.close()
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None, echo: bool = False) -> None:
        self._settings = settings
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """Create the pooled engine. Calling it twice is a no-op."""
        if self._engine is not None:
            return

        settings = self._settings or get_settings().database
        self._engine = create_async_engine(
            settings.async_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
            echo=self._echo,
        )
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info("Record database ready", host=settings.host, database=settings.name)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Record database closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        One unit of work; committed on exit, rolled back on error.

        Raises:
            RuntimeError: initialize() has not been called
        """
        if self._sessions is None:
            raise RuntimeError("record database is not initialized")
        async with self._sessions.begin() as session:
            yield session

    async def health_check(self) -> bool:
        """True if a trivial query succeeds."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Record database unreachable", error=type(e).__name__)
            return False
        return True


@lru_cache()
def get_db_manager() -> DatabaseManager:
    """Process-wide database manager."""
    settings = get_settings()
    return DatabaseManager(settings.database, echo=settings.debug)
