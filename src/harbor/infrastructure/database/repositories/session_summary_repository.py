"""
Session Summary Repository

Summaries are written once per session, on end; nothing reads them
back at runtime.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from harbor.infrastructure.database.models.session_summary_model import SessionSummaryModel
from harbor.infrastructure.database.repositories.base import BaseRepository


class SessionSummaryRepository(BaseRepository[SessionSummaryModel]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(SessionSummaryModel, session)
