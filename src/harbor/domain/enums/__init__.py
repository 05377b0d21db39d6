"""Domain enums package."""

from harbor.domain.enums.severity import SeverityLevel, SessionPriority
from harbor.domain.enums.indicators import (
    Indicator,
    DIAL_988_SIGNALS,
    DIAL_911_SIGNALS,
    SAFETY_PROTOCOL_SIGNALS,
)
from harbor.domain.enums.session import (
    SessionState,
    SenderRole,
    MessageType,
    CounselorStatus,
    CounselorPersonality,
)
from harbor.domain.enums.resources import (
    ResourceType,
    ResourceUrgency,
    ContactType,
    EmergencyAction,
    InteractionAction,
)

__all__ = [
    # Severity
    "SeverityLevel",
    "SessionPriority",
    # Indicators
    "Indicator",
    "DIAL_988_SIGNALS",
    "DIAL_911_SIGNALS",
    "SAFETY_PROTOCOL_SIGNALS",
    # Session
    "SessionState",
    "SenderRole",
    "MessageType",
    "CounselorStatus",
    "CounselorPersonality",
    # Resources
    "ResourceType",
    "ResourceUrgency",
    "ContactType",
    "EmergencyAction",
    "InteractionAction",
]
