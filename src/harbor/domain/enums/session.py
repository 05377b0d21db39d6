"""
Session Enumerations

States, roles and message types for crisis support sessions,
plus counselor persona attributes.
"""

from enum import StrEnum


class SessionState(StrEnum):
    """
    Crisis session lifecycle states.

    Queued -> Assigned -> Active <-> Escalated -> Ended
    """

    QUEUED = "queued"
    """Session created, counselor not yet bound."""

    ASSIGNED = "assigned"
    """Counselor bound, welcome not yet delivered."""

    ACTIVE = "active"
    """Bidirectional message exchange in progress."""

    ESCALATED = "escalated"
    """
    Emergency action in progress.

    SAFETY_NOTE: Not terminal. The session returns to ACTIVE once
    the action is acknowledged; priority keeps its high-water mark.
    """

    ENDED = "ended"
    """Terminal. Late messages are dropped."""


class SenderRole(StrEnum):
    """Author role of a session message."""

    USER = "user"
    COUNSELOR = "counselor"
    SYSTEM = "system"


class MessageType(StrEnum):
    """Rendering category of a session message."""

    TEXT = "text"
    SYSTEM = "system"
    CRISIS_ALERT = "crisis-alert"


class CounselorStatus(StrEnum):
    """Availability of a counselor persona."""

    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class CounselorPersonality(StrEnum):
    """Conversation style of a counselor persona."""

    EMPATHETIC = "empathetic"
    SOLUTION_FOCUSED = "solution-focused"
    TRAUMA_INFORMED = "trauma-informed"
    COGNITIVE = "cognitive"
