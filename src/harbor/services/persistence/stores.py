"""
Record Stores

Durable destinations for assessments, interactions, safety plans and
session summaries. The persistence adapter writes through a store and
buffers locally whenever the store raises PersistenceFailure.

ARCHITECTURE: Stores raise PersistenceFailure for every storage error
so the adapter's retry policy has a single exception to handle.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from harbor.config.logging_config import get_logger
from harbor.domain.models.emergency import CrisisInteraction
from harbor.domain.models.resource import SafetyPlan
from harbor.domain.models.risk import RiskAssessment
from harbor.errors import PersistenceFailure
from harbor.infrastructure.database.connection import DatabaseManager
from harbor.infrastructure.database.models import (
    CrisisInteractionModel,
    RiskAssessmentModel,
    SafetyPlanModel,
    SessionSummaryModel,
)
from harbor.infrastructure.database.repositories import (
    AssessmentRepository,
    InteractionRepository,
    SafetyPlanRepository,
    SessionSummaryRepository,
)

logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RecordStore(ABC):
    """
    Abstract durable record store.

    Implementations:
    - InMemoryRecordStore: process-local, used by tests and development
    - DatabaseRecordStore: PostgreSQL through the repository layer
    """

    @abstractmethod
    async def append_assessment(self, session_id: Optional[str], assessment: RiskAssessment) -> None:
        """Append an assessment to the log."""
        pass

    @abstractmethod
    async def append_interaction(self, interaction: CrisisInteraction) -> None:
        """Append a crisis interaction to the log."""
        pass

    @abstractmethod
    async def save_session_summary(self, summary: dict[str, Any]) -> None:
        """Store the final summary of an ended session."""
        pass

    @abstractmethod
    async def save_safety_plan(self, plan: SafetyPlan) -> None:
        """Insert or replace a safety plan."""
        pass

    @abstractmethod
    async def list_assessments(
        self,
        session_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[RiskAssessment]:
        """List assessments in chronological order."""
        pass

    @abstractmethod
    async def list_interactions(self, session_id: Optional[str] = None) -> list[CrisisInteraction]:
        """List interactions in chronological order."""
        pass

    @abstractmethod
    async def get_active_safety_plan(self, user_id: str) -> Optional[SafetyPlan]:
        """Get the most recently updated active plan for a user."""
        pass


class InMemoryRecordStore(RecordStore):
    """
    Process-local record store.

    Setting ``available`` to False makes every call raise
    PersistenceFailure, which is how tests simulate an outage.
    Writes are idempotent by record id.
    """

    def __init__(self) -> None:
        self.available = True
        self._assessments: dict[str, tuple[Optional[str], RiskAssessment]] = {}
        self._interactions: dict[str, CrisisInteraction] = {}
        self._summaries: dict[str, dict[str, Any]] = {}
        self._plans: dict[str, SafetyPlan] = {}

    def _check(self) -> None:
        if not self.available:
            raise PersistenceFailure("record store unavailable")

    async def append_assessment(self, session_id: Optional[str], assessment: RiskAssessment) -> None:
        self._check()
        self._assessments[str(assessment.id)] = (session_id, assessment)

    async def append_interaction(self, interaction: CrisisInteraction) -> None:
        self._check()
        self._interactions[interaction.id] = interaction

    async def save_session_summary(self, summary: dict[str, Any]) -> None:
        self._check()
        self._summaries[summary["session_id"]] = dict(summary)

    async def save_safety_plan(self, plan: SafetyPlan) -> None:
        self._check()
        self._plans[plan.id] = plan

    async def list_assessments(
        self,
        session_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[RiskAssessment]:
        self._check()
        rows = [
            assessment
            for owner, assessment in self._assessments.values()
            if (session_id is None or owner == session_id)
            and (since is None or assessment.timestamp >= since)
        ]
        return sorted(rows, key=lambda a: a.timestamp)

    async def list_interactions(self, session_id: Optional[str] = None) -> list[CrisisInteraction]:
        self._check()
        rows = [
            i for i in self._interactions.values()
            if session_id is None or i.session_id == session_id
        ]
        return sorted(rows, key=lambda i: i.timestamp)

    async def get_active_safety_plan(self, user_id: str) -> Optional[SafetyPlan]:
        self._check()
        plans = [p for p in self._plans.values() if p.user_id == user_id and p.is_active]
        if not plans:
            return None
        return max(plans, key=lambda p: p.updated_at or p.created_at or _EPOCH)

    @property
    def summaries(self) -> dict[str, dict[str, Any]]:
        return dict(self._summaries)


class DatabaseRecordStore(RecordStore):
    """
    PostgreSQL record store.

    Opens one database session per call. Storage and connectivity
    errors are wrapped in PersistenceFailure.

    Usage:
        store = DatabaseRecordStore(get_db_manager())
        await store.append_assessment(session_id, assessment)
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def append_assessment(self, session_id: Optional[str], assessment: RiskAssessment) -> None:
        try:
            async with self._db.session() as session:
                await AssessmentRepository(session).upsert(
                    RiskAssessmentModel.from_domain(session_id, assessment)
                )
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"assessment write failed: {e}") from e

    async def append_interaction(self, interaction: CrisisInteraction) -> None:
        try:
            async with self._db.session() as session:
                await InteractionRepository(session).upsert(
                    CrisisInteractionModel.from_domain(interaction)
                )
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"interaction write failed: {e}") from e

    async def save_session_summary(self, summary: dict[str, Any]) -> None:
        try:
            async with self._db.session() as session:
                await SessionSummaryRepository(session).upsert(
                    SessionSummaryModel.from_summary(summary)
                )
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"session summary write failed: {e}") from e

    async def save_safety_plan(self, plan: SafetyPlan) -> None:
        try:
            async with self._db.session() as session:
                await SafetyPlanRepository(session).upsert(SafetyPlanModel.from_domain(plan))
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"safety plan write failed: {e}") from e

    async def list_assessments(
        self,
        session_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[RiskAssessment]:
        try:
            async with self._db.session() as session:
                rows = await AssessmentRepository(session).list_since(
                    session_id=session_id,
                    since=since,
                )
                return [row.to_domain() for row in rows]
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"assessment read failed: {e}") from e

    async def list_interactions(self, session_id: Optional[str] = None) -> list[CrisisInteraction]:
        try:
            async with self._db.session() as session:
                rows = await InteractionRepository(session).list_recent(session_id=session_id)
                return [row.to_domain() for row in rows]
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"interaction read failed: {e}") from e

    async def get_active_safety_plan(self, user_id: str) -> Optional[SafetyPlan]:
        try:
            async with self._db.session() as session:
                row = await SafetyPlanRepository(session).get_active_for_user(user_id)
                return row.to_domain() if row else None
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise PersistenceFailure(f"safety plan read failed: {e}") from e
