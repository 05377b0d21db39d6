"""
Crisis Resource Models

Hotlines, coping techniques, emergency contacts and safety plans
served by the resource catalog.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from harbor.domain.enums.resources import ContactType, ResourceType, ResourceUrgency


@dataclass(frozen=True)
class CrisisResource:
    """
    A crisis resource.

    Attributes:
        id: Stable identifier
        title: Display title
        type: Resource category
        urgency: When the resource is meant to be used
        content: Short description
        category: Free-form grouping used by search
        instructions: Ordered steps
        phone_number: Number to call or text, for hotlines
        critical: Part of the compiled-in critical set
    """

    id: str
    title: str
    type: ResourceType
    urgency: ResourceUrgency
    content: str
    category: str = ""
    instructions: tuple[str, ...] = ()
    phone_number: Optional[str] = None
    critical: bool = False

    def matches(self, query: str) -> bool:
        """Case-insensitive match on title, content, category and instructions."""
        needle = query.lower()
        haystack = (self.title, self.content, self.category, *self.instructions)
        return any(needle in part.lower() for part in haystack)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "urgency": self.urgency.value,
            "content": self.content,
            "category": self.category,
            "instructions": list(self.instructions),
            "phone_number": self.phone_number,
            "critical": self.critical,
        }


@dataclass(frozen=True)
class EmergencyContact:
    """
    An emergency contact.

    Attributes:
        id: Stable identifier
        name: Display name
        phone: Number to call or text
        type: Contact category
        available_24_7: Whether the contact is always reachable
        description: Short description
        instructions: How to reach the contact
        text_only: Reached by SMS rather than voice
        critical: Part of the compiled-in critical set
    """

    id: str
    name: str
    phone: str
    type: ContactType
    available_24_7: bool
    description: str = ""
    instructions: str = ""
    text_only: bool = False
    critical: bool = False

    @property
    def sort_key(self) -> tuple[int, int]:
        """24/7 first, then emergency, crisis line, professional, personal."""
        return (0 if self.available_24_7 else 1, self.type.rank)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "type": self.type.value,
            "available_24_7": self.available_24_7,
            "description": self.description,
            "instructions": self.instructions,
            "text_only": self.text_only,
            "critical": self.critical,
        }


@dataclass
class SafetyPlan:
    """
    A personal safety plan.

    Keyed by user id or anonymous device id. Only the most recent
    active plan per user is served.
    """

    user_id: str
    warning_signs: list[str] = field(default_factory=list)
    coping_strategies: list[str] = field(default_factory=list)
    social_contacts: list[str] = field(default_factory=list)
    professional_contacts: list[str] = field(default_factory=list)
    safe_environment_steps: list[str] = field(default_factory=list)
    emergency_contacts: list[str] = field(default_factory=list)
    reasons_for_living: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: f"plan-{uuid4().hex[:12]}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "warning_signs": list(self.warning_signs),
            "coping_strategies": list(self.coping_strategies),
            "social_contacts": list(self.social_contacts),
            "professional_contacts": list(self.professional_contacts),
            "safe_environment_steps": list(self.safe_environment_steps),
            "emergency_contacts": list(self.emergency_contacts),
            "reasons_for_living": list(self.reasons_for_living),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SafetyPlan":
        created = data.get("created_at")
        updated = data.get("updated_at")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            warning_signs=list(data.get("warning_signs", [])),
            coping_strategies=list(data.get("coping_strategies", [])),
            social_contacts=list(data.get("social_contacts", [])),
            professional_contacts=list(data.get("professional_contacts", [])),
            safe_environment_steps=list(data.get("safe_environment_steps", [])),
            emergency_contacts=list(data.get("emergency_contacts", [])),
            reasons_for_living=list(data.get("reasons_for_living", [])),
            is_active=bool(data.get("is_active", True)),
            created_at=datetime.fromisoformat(created) if created else None,
            updated_at=datetime.fromisoformat(updated) if updated else None,
        )
