"""
Outbound Session Events

Typed events consumed by the user-facing collaborator. Every event
belongs to one session and carries a per-session sequence number
assigned by the transport on publish.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Outbound event categories."""

    MESSAGE_NEW = "message:new"
    TYPING_START = "typing:start"
    TYPING_STOP = "typing:stop"
    QUEUE_UPDATE = "queue:update"
    COUNSELOR_ASSIGNED = "counselor:assigned"
    CRISIS_ESCALATED = "crisis:escalated"
    CRISIS_DISPATCH_FAILED = "crisis:dispatch_failed"
    """
    An emergency action could not be dispatched.

    SAFETY_NOTE: Payload always carries manual-dial contacts.
    """
    CONNECTION_LOST = "connection:lost"
    CONNECTION_RESTORED = "connection:restored"
    SESSION_ENDED = "session:ended"


@dataclass(frozen=True)
class OutboundEvent:
    """
    A single outbound event.

    Attributes:
        type: Event category
        session_id: Session the event belongs to
        timestamp: Creation time
        payload: JSON-serializable event body
        sequence: Per-session delivery order, set on publish
    """

    type: EventType
    session_id: str
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)
    sequence: int = -1

    def with_sequence(self, sequence: int) -> "OutboundEvent":
        return replace(self, sequence=sequence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "sequence": self.sequence,
            "data": self.payload,
        }
