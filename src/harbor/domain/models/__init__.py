"""Domain models package."""

from harbor.domain.models.risk import (
    ScoreThresholds,
    RiskAssessment,
    CrisisLevelConfig,
    CRISIS_LEVELS,
    get_level_config,
    should_auto_escalate,
)
from harbor.domain.models.counselor import Counselor, DEFAULT_COUNSELORS, CRISIS_SPECIALIST
from harbor.domain.models.session import Session, Message
from harbor.domain.models.emergency import EmergencyProtocol, EmergencyEvent, CrisisInteraction
from harbor.domain.models.resource import CrisisResource, EmergencyContact, SafetyPlan

__all__ = [
    # Risk
    "ScoreThresholds",
    "RiskAssessment",
    "CrisisLevelConfig",
    "CRISIS_LEVELS",
    "get_level_config",
    "should_auto_escalate",
    # Counselors
    "Counselor",
    "DEFAULT_COUNSELORS",
    "CRISIS_SPECIALIST",
    # Session
    "Session",
    "Message",
    # Emergency
    "EmergencyProtocol",
    "EmergencyEvent",
    "CrisisInteraction",
    # Resources
    "CrisisResource",
    "EmergencyContact",
    "SafetyPlan",
]
