"""
Database ORM models package.
"""

from harbor.infrastructure.database.models.assessment_model import RiskAssessmentModel
from harbor.infrastructure.database.models.interaction_model import CrisisInteractionModel
from harbor.infrastructure.database.models.safety_plan_model import SafetyPlanModel
from harbor.infrastructure.database.models.session_summary_model import SessionSummaryModel

__all__ = [
    "RiskAssessmentModel",
    "CrisisInteractionModel",
    "SafetyPlanModel",
    "SessionSummaryModel",
]
