"""
Session Domain Model

Represents one crisis support conversation. A Session is owned by
exactly one state machine and mutated only through its transition API.

PRIVACY: Message content may contain sensitive information and
must never be written to logs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from harbor.domain.enums.session import MessageType, SenderRole, SessionState
from harbor.domain.enums.severity import SessionPriority, SeverityLevel
from harbor.domain.models.counselor import Counselor
from harbor.domain.models.risk import RiskAssessment


def _new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class Message:
    """
    A single message in a session.

    Ordering is the arrival order into the session log (``sequence``),
    not wall-clock send time.

    Attributes:
        session_id: Owning session
        sender_id: User, counselor or "system"
        sender_role: Author role
        content: Message text
        timestamp: When the message was appended
        type: Rendering category
        sequence: Position in the session log
        id: Unique message identifier
    """

    session_id: str
    sender_id: str
    sender_role: SenderRole
    content: str
    timestamp: datetime
    type: MessageType = MessageType.TEXT
    sequence: int = 0
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize message for outbound events."""
        return {
            "id": self.id,
            "session_id": self.session_id,
            "sender_id": self.sender_id,
            "sender_role": self.sender_role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "sequence": self.sequence,
        }


@dataclass
class Session:
    """
    Crisis session entity.

    Attributes:
        user_id: Associated user or anonymous device id
        created_at: Session creation time
        last_activity_at: Last inbound or outbound activity
        priority: High-water mark of all assessments seen
        state: Current lifecycle state
        counselor: Assigned counselor persona
        messages: Append-only message log
        assessments: Append-only assessment log
        ended_at: Time the session ended
        end_reason: Why the session ended
        session_id: Unique session identifier
    """

    user_id: str
    created_at: datetime
    last_activity_at: datetime
    priority: SessionPriority = SessionPriority.LOW
    state: SessionState = SessionState.QUEUED
    counselor: Optional[Counselor] = None
    messages: list[Message] = field(default_factory=list)
    assessments: list[RiskAssessment] = field(default_factory=list)
    ended_at: Optional[datetime] = None
    end_reason: Optional[str] = None
    session_id: str = field(default_factory=_new_id)

    def raise_priority(self, priority: SessionPriority) -> bool:
        """
        Raise priority to the given value if it is higher.

        Returns:
            True if priority changed
        """
        if priority > self.priority:
            self.priority = priority
            return True
        return False

    def append_message(
        self,
        sender_id: str,
        sender_role: SenderRole,
        content: str,
        timestamp: datetime,
        message_type: MessageType = MessageType.TEXT,
    ) -> Message:
        """Append a message to the log and return it."""
        message = Message(
            session_id=self.session_id,
            sender_id=sender_id,
            sender_role=sender_role,
            content=content,
            timestamp=timestamp,
            type=message_type,
            sequence=len(self.messages),
        )
        self.messages.append(message)
        self.last_activity_at = timestamp
        return message

    @property
    def is_ended(self) -> bool:
        return self.state == SessionState.ENDED

    @property
    def peak_severity(self) -> SeverityLevel:
        """Highest severity among recorded assessments."""
        if not self.assessments:
            return SeverityLevel.SAFE
        return max(a.level for a in self.assessments)

    @property
    def user_message_count(self) -> int:
        return sum(1 for m in self.messages if m.sender_role == SenderRole.USER)

    @property
    def duration_seconds(self) -> float:
        end = self.ended_at or self.last_activity_at
        return max(0.0, (end - self.created_at).total_seconds())

    def to_dict(self) -> dict[str, Any]:
        """Serialize session state (messages included)."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "state": self.state.value,
            "priority": self.priority.label,
            "counselor": self.counselor.to_dict() if self.counselor else None,
            "messages": [m.to_dict() for m in self.messages],
            "created_at": self.created_at.isoformat(),
            "last_activity_at": self.last_activity_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }

    def summary(self) -> dict[str, Any]:
        """
        Final session summary handed to persistence on end.

        Contains no message content.
        """
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "counselor_id": self.counselor.id if self.counselor else None,
            "final_priority": self.priority.label,
            "peak_severity": self.peak_severity.label,
            "message_count": len(self.messages),
            "user_message_count": self.user_message_count,
            "assessment_count": len(self.assessments),
            "escalated": any(m.type == MessageType.CRISIS_ALERT for m in self.messages),
            "created_at": self.created_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "end_reason": self.end_reason,
            "duration_seconds": self.duration_seconds,
        }
