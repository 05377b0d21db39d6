"""
Base Repository

Record tables are written by replay as well as by the live path, so
writes are keyed upserts: writing the same record twice leaves one row.
"""

from typing import Generic, Sequence, Type, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from harbor.infrastructure.database.connection import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Upsert and query helpers shared by the record repositories.

    Usage:
        class AssessmentRepository(BaseRepository[RiskAssessmentModel]):
            def __init__(self, session):
                super().__init__(RiskAssessmentModel, session)
    """

    def __init__(self, model: Type[ModelT], session: AsyncSession) -> None:
        self._model = model
        self._session = session

    async def upsert(self, row: ModelT) -> ModelT:
        """Insert the row, or overwrite the row with the same primary key."""
        merged = await self._session.merge(row)
        await self._session.flush()
        return merged

    async def _all(self, query: Select) -> Sequence[ModelT]:
        result = await self._session.execute(query)
        return result.scalars().all()
