"""
Database repositories package.
"""

from harbor.infrastructure.database.repositories.base import BaseRepository
from harbor.infrastructure.database.repositories.assessment_repository import AssessmentRepository
from harbor.infrastructure.database.repositories.interaction_repository import InteractionRepository
from harbor.infrastructure.database.repositories.safety_plan_repository import SafetyPlanRepository
from harbor.infrastructure.database.repositories.session_summary_repository import (
    SessionSummaryRepository,
)

__all__ = [
    "BaseRepository",
    "AssessmentRepository",
    "InteractionRepository",
    "SafetyPlanRepository",
    "SessionSummaryRepository",
]
