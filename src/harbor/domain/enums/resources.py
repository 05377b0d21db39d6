"""
Resource and Emergency Enumerations

Categories used by the resource catalog and the emergency
actions the escalation coordinator can fire.
"""

from enum import StrEnum


class ResourceType(StrEnum):
    """Kind of crisis resource."""

    HOTLINE = "hotline"
    BREATHING = "breathing"
    GROUNDING = "grounding"
    SAFETY_PLAN = "safety_plan"
    TECHNIQUE = "technique"
    SELF_HELP = "self_help"


class ResourceUrgency(StrEnum):
    """How soon a resource is meant to be used."""

    IMMEDIATE = "immediate"
    URGENT = "urgent"
    HELPFUL = "helpful"

    @property
    def rank(self) -> int:
        """Sort rank, most urgent first."""
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    ResourceUrgency.IMMEDIATE: 0,
    ResourceUrgency.URGENT: 1,
    ResourceUrgency.HELPFUL: 2,
}


class ContactType(StrEnum):
    """Kind of emergency contact."""

    EMERGENCY = "emergency"
    CRISIS_LINE = "crisis_line"
    PROFESSIONAL = "professional"
    PERSONAL = "personal"

    @property
    def rank(self) -> int:
        """Sort rank: emergency, crisis line, professional, personal."""
        return _CONTACT_RANK[self]


_CONTACT_RANK = {
    ContactType.EMERGENCY: 0,
    ContactType.CRISIS_LINE: 1,
    ContactType.PROFESSIONAL: 2,
    ContactType.PERSONAL: 3,
}


class EmergencyAction(StrEnum):
    """
    Emergency actions fired by the escalation coordinator.

    SAFETY-CRITICAL: Dial actions are simulated. A failed dispatch is
    always surfaced so the user can be shown manual-dial instructions.
    """

    AUTO_DIAL_988 = "auto_dial_988"
    """Connect to the 988 Suicide & Crisis Lifeline."""

    AUTO_DIAL_911 = "auto_dial_911"
    """Connect to emergency medical services."""

    SPECIALIST_HANDOFF = "specialist_handoff"
    """Bring a crisis specialist into the session."""

    SAFETY_PROTOCOL = "safety_protocol"
    """Present safety-planning steps and protective resources."""


class InteractionAction(StrEnum):
    """User-facing crisis interactions recorded for sync."""

    CALL = "call"
    TEXT = "text"
    RESOURCE_VIEW = "resource_view"
    ASSESSMENT = "assessment"
    EMERGENCY_DISPATCH = "emergency_dispatch"
