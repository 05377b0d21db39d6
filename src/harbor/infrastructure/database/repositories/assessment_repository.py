"""
Risk Assessment Repository

Append-only access to the assessment log.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from harbor.infrastructure.database.models.assessment_model import RiskAssessmentModel
from harbor.infrastructure.database.repositories.base import BaseRepository


class AssessmentRepository(BaseRepository[RiskAssessmentModel]):
    """Repository for risk assessment records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(RiskAssessmentModel, session)

    async def list_since(
        self,
        *,
        session_id: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[RiskAssessmentModel]:
        """
        Get assessments in chronological order.

        Args:
            session_id: Restrict to one session
            since: Only assessments at or after this time
            limit: Maximum results
        """
        query = select(RiskAssessmentModel)
        if session_id is not None:
            query = query.where(RiskAssessmentModel.session_id == session_id)
        if since is not None:
            query = query.where(RiskAssessmentModel.assessed_at >= since)
        query = query.order_by(RiskAssessmentModel.assessed_at.asc()).limit(limit)

        return await self._all(query)
