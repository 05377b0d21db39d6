"""
Safety Plan Repository

PRIVACY: Plan content is user-authored; only ids are logged.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harbor.infrastructure.database.models.safety_plan_model import SafetyPlanModel
from harbor.infrastructure.database.repositories.base import BaseRepository


class SafetyPlanRepository(BaseRepository[SafetyPlanModel]):
    """Repository for safety plans."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(SafetyPlanModel, session)

    async def get_active_for_user(self, user_id: str) -> Optional[SafetyPlanModel]:
        """
        Get the most recently updated active plan for a user.

        Args:
            user_id: User or anonymous device id

        Returns:
            Plan if one exists, None otherwise
        """
        result = await self._session.execute(
            select(SafetyPlanModel)
            .where(
                SafetyPlanModel.user_id == user_id,
                SafetyPlanModel.is_active.is_(True),
            )
            .order_by(SafetyPlanModel.updated_at.desc().nulls_last())
            .limit(1)
        )
        return result.scalar_one_or_none()
