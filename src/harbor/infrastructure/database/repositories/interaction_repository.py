"""
Crisis Interaction Repository
"""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harbor.infrastructure.database.models.interaction_model import CrisisInteractionModel
from harbor.infrastructure.database.repositories.base import BaseRepository


class InteractionRepository(BaseRepository[CrisisInteractionModel]):
    """Repository for crisis interaction records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CrisisInteractionModel, session)

    async def list_recent(
        self,
        *,
        session_id: Optional[str] = None,
        limit: int = 100,
    ) -> Sequence[CrisisInteractionModel]:
        """Get the most recent interactions, oldest first."""
        query = select(CrisisInteractionModel)
        if session_id is not None:
            query = query.where(CrisisInteractionModel.session_id == session_id)
        query = query.order_by(CrisisInteractionModel.occurred_at.desc()).limit(limit)

        return list(reversed(await self._all(query)))
