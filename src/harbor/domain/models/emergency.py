"""
Emergency Models

Emergency protocols, the events fired by the escalation coordinator,
and the crisis interaction records kept for offline sync.

SAFETY-CRITICAL: EmergencyEvent records are never mutated after
creation and form the escalation audit trail.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from harbor.domain.enums.resources import EmergencyAction, InteractionAction
from harbor.domain.enums.severity import SeverityLevel


@dataclass(frozen=True)
class EmergencyProtocol:
    """
    Emergency protocol definition.

    Attributes:
        trigger: Protocol trigger name
        action: Action fired
        message: System message shown before dispatch
        immediate: Whether dispatch happens without user confirmation
        severity: CRITICAL protocols move the session to Escalated
        service_name: Service contacted, if any
        service_number: Number dialed, if any
    """

    trigger: str
    action: EmergencyAction
    message: str
    immediate: bool
    severity: SeverityLevel = SeverityLevel.HIGH
    service_name: Optional[str] = None
    service_number: Optional[str] = None


@dataclass(frozen=True)
class EmergencyEvent:
    """
    Emergency action decided by the escalation coordinator.

    Attributes:
        trigger: Protocol trigger that fired
        action: Emergency action
        session_id: Session the event belongs to
        timestamp: Creation time
        deduped: True when this action was suppressed by the dedup window
        level: Severity of the triggering assessment
        indicators: Indicators that fired the protocol
        assessment_id: Triggering assessment
        event_id: Unique event identifier
    """

    trigger: str
    action: EmergencyAction
    session_id: str
    timestamp: datetime
    deduped: bool = False
    level: SeverityLevel = SeverityLevel.CRITICAL
    indicators: frozenset[str] = frozenset()
    assessment_id: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def is_dial(self) -> bool:
        return self.action in (EmergencyAction.AUTO_DIAL_988, EmergencyAction.AUTO_DIAL_911)

    def to_audit_record(self) -> dict[str, Any]:
        """Convert to audit log record."""
        return {
            "event_id": self.event_id,
            "trigger": self.trigger,
            "action": self.action.value,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "deduped": self.deduped,
            "level": self.level.label,
            "indicators": sorted(self.indicators),
            "assessment_id": self.assessment_id,
        }


@dataclass(frozen=True)
class CrisisInteraction:
    """
    A crisis interaction taken by or on behalf of the user.

    Attributes:
        action: What happened (call, text, resource view, ...)
        level: Severity at the time of the interaction
        timestamp: When it happened
        contact: Contact or resource involved
        successful: Whether the interaction completed
        session_id: Session context, if any
        metadata: Additional non-sensitive context
        id: Unique interaction identifier
    """

    action: InteractionAction
    level: SeverityLevel
    timestamp: datetime
    contact: Optional[str] = None
    successful: bool = True
    session_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"crisis_{uuid4().hex[:12]}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.value,
            "level": self.level.label,
            "timestamp": self.timestamp.isoformat(),
            "contact": self.contact,
            "successful": self.successful,
            "session_id": self.session_id,
            "metadata": dict(self.metadata),
        }
