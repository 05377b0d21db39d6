"""
HARBOR Domain Layer

Core entities and value objects for crisis assessment and sessions.
These models are independent of infrastructure and configuration.
"""

from harbor.domain.enums import (
    SeverityLevel,
    SessionPriority,
    SessionState,
    EmergencyAction,
    Indicator,
)
from harbor.domain.models import (
    RiskAssessment,
    Session,
    Message,
    Counselor,
    EmergencyEvent,
    CrisisResource,
    EmergencyContact,
)

__all__ = [
    "SeverityLevel",
    "SessionPriority",
    "SessionState",
    "EmergencyAction",
    "Indicator",
    "RiskAssessment",
    "Session",
    "Message",
    "Counselor",
    "EmergencyEvent",
    "CrisisResource",
    "EmergencyContact",
]
