"""
Resource Catalog

Offline-first lookup of crisis hotlines, coping techniques and
emergency contacts, plus per-user safety plans.

SAFETY-CRITICAL: The critical set (988, 911, Crisis Text Line) is
compiled into the package. It is served with zero network access,
and neither custom entries nor an extension file can shadow or remove
it. Every failure path downstream of risk scoring relies on this set
staying reachable.

ARCHITECTURE: Extension resources are optional and loaded from a
local JSON file. A missing or broken file leaves the built-in set in
place.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import uuid4

from harbor.config.logging_config import get_logger
from harbor.domain.enums.resources import ContactType, ResourceType, ResourceUrgency
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.resource import CrisisResource, EmergencyContact, SafetyPlan
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.services.resources.builtin import (
    BUILT_IN_CONTACTS,
    BUILT_IN_RESOURCES,
    CRITICAL_CONTACT_IDS,
    CRITICAL_RESOURCE_IDS,
)

logger = get_logger(__name__)

CUSTOM_ID_PREFIX = "custom-"

ResourceSelector = Union[ResourceUrgency, ResourceType, str]

# Highest contact type rank recommended per severity level
_RECOMMENDED_CONTACT_RANK = {
    SeverityLevel.CRITICAL: ContactType.CRISIS_LINE.rank,
    SeverityLevel.HIGH: ContactType.PROFESSIONAL.rank,
}


class ResourceCatalog:
    """
    Crisis resource catalog.

    Resources are held in insertion order: built-ins first, then
    extension-file entries, then custom entries added at runtime.

    Usage:
        catalog = ResourceCatalog()
        catalog.get(ResourceUrgency.IMMEDIATE)
        catalog.get_emergency_contacts()
        catalog.search_resources("breathing")
    """

    def __init__(
        self,
        extension_path: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize catalog.

        Args:
            extension_path: Optional path to a JSON file of extra resources
            clock: Clock used to stamp safety plans
        """
        self._clock = clock or SystemClock()
        self._resources: dict[str, CrisisResource] = {r.id: r for r in BUILT_IN_RESOURCES}
        self._contacts: dict[str, EmergencyContact] = {c.id: c for c in BUILT_IN_CONTACTS}
        self._safety_plans: dict[str, SafetyPlan] = {}

        if extension_path and os.path.exists(extension_path):
            self._load_extension(extension_path)

    def _load_extension(self, path: str) -> None:
        """Load extra resources and contacts from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            resources = [_resource_from_dict(r) for r in data.get("resources", [])]
            contacts = [_contact_from_dict(c) for c in data.get("contacts", [])]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load resource extension file", path=path, error=str(e))
            return

        loaded = 0
        for resource in resources:
            if resource.id in CRITICAL_RESOURCE_IDS:
                logger.warning("Extension entry would shadow critical resource", resource_id=resource.id)
                continue
            self._resources[resource.id] = resource
            loaded += 1
        for contact in contacts:
            if contact.id in CRITICAL_CONTACT_IDS:
                logger.warning("Extension entry would shadow critical contact", contact_id=contact.id)
                continue
            self._contacts[contact.id] = contact
            loaded += 1

        logger.info(
            "Loaded resource extension config",
            path=path,
            resource_count=len(resources),
            contact_count=len(contacts),
            accepted=loaded,
        )

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def resources(self) -> list[CrisisResource]:
        return list(self._resources.values())

    def get(self, selector: ResourceSelector) -> list[CrisisResource]:
        """
        Get resources by urgency or by type.

        Args:
            selector: A ResourceUrgency, a ResourceType, or either's value

        Returns:
            Matching resources, empty for an unknown selector
        """
        if isinstance(selector, ResourceUrgency):
            return self.get_by_urgency(selector)
        if isinstance(selector, ResourceType):
            return self.get_by_type(selector)
        if selector in ResourceUrgency._value2member_map_:
            return self.get_by_urgency(ResourceUrgency(selector))
        if selector in ResourceType._value2member_map_:
            return self.get_by_type(ResourceType(selector))
        logger.debug("Unknown resource selector", selector=selector)
        return []

    def get_by_urgency(self, urgency: ResourceUrgency) -> list[CrisisResource]:
        return [r for r in self._resources.values() if r.urgency == urgency]

    def get_by_type(self, resource_type: ResourceType) -> list[CrisisResource]:
        return [r for r in self._resources.values() if r.type == resource_type]

    def get_immediate_resources(self) -> list[CrisisResource]:
        """Immediate resources and urgent hotlines, most urgent first."""
        selected = [
            r for r in self._resources.values()
            if r.urgency == ResourceUrgency.IMMEDIATE
            or (r.type == ResourceType.HOTLINE and r.urgency == ResourceUrgency.URGENT)
        ]
        return sorted(selected, key=lambda r: r.urgency.rank)

    def get_emergency_contacts(self) -> list[EmergencyContact]:
        """All contacts, 24/7 first, then by contact type."""
        return sorted(self._contacts.values(), key=lambda c: c.sort_key)

    def get_crisis_hotlines(self) -> list[EmergencyContact]:
        return [
            c for c in self.get_emergency_contacts()
            if c.type in (ContactType.EMERGENCY, ContactType.CRISIS_LINE)
        ]

    def get_recommended_contacts(self, level: SeverityLevel) -> list[EmergencyContact]:
        """Contacts suited to a severity level; narrower as severity rises."""
        max_rank = _RECOMMENDED_CONTACT_RANK.get(level)
        contacts = self.get_emergency_contacts()
        if max_rank is None:
            return contacts
        return [c for c in contacts if c.type.rank <= max_rank]

    def get_critical_contacts(self) -> list[EmergencyContact]:
        """The compiled-in critical contacts, in contact order."""
        return [c for c in self.get_emergency_contacts() if c.id in CRITICAL_CONTACT_IDS]

    def search_resources(self, query: str) -> list[CrisisResource]:
        """Case-insensitive search over titles, content, categories and steps."""
        query = (query or "").strip()
        if not query:
            return []
        return [r for r in self._resources.values() if r.matches(query)]

    def is_available_offline(self) -> bool:
        """
        True when the whole critical set is present.

        The critical set ships with the package, so this holds with
        zero network access and an empty cache.
        """
        return (
            CRITICAL_RESOURCE_IDS.issubset(self._resources)
            and CRITICAL_CONTACT_IDS.issubset(self._contacts)
        )

    # =========================================================================
    # Custom entries
    # =========================================================================

    def add_custom_resource(
        self,
        title: str,
        resource_type: ResourceType,
        urgency: ResourceUrgency,
        content: str,
        category: str = "Custom",
        instructions: tuple[str, ...] = (),
        phone_number: Optional[str] = None,
    ) -> CrisisResource:
        """Add a user resource under a fresh custom- id."""
        resource = CrisisResource(
            id=_custom_id(),
            title=title,
            type=resource_type,
            urgency=urgency,
            content=content,
            category=category,
            instructions=tuple(instructions),
            phone_number=phone_number,
        )
        self._resources[resource.id] = resource
        logger.info("Custom resource added", resource_id=resource.id, type=resource.type.value)
        return resource

    def add_custom_contact(
        self,
        name: str,
        phone: str,
        contact_type: ContactType = ContactType.PERSONAL,
        available_24_7: bool = False,
        description: str = "",
    ) -> EmergencyContact:
        """Add a user contact under a fresh custom- id."""
        contact = EmergencyContact(
            id=_custom_id(),
            name=name,
            phone=phone,
            type=contact_type,
            available_24_7=available_24_7,
            description=description,
        )
        self._contacts[contact.id] = contact
        logger.info("Custom contact added", contact_id=contact.id, type=contact.type.value)
        return contact

    def remove_custom(self, entry_id: str) -> bool:
        """
        Remove a custom resource or contact.

        Only custom- entries can be removed. Returns False for anything
        else, including every critical entry.
        """
        if not entry_id.startswith(CUSTOM_ID_PREFIX):
            logger.warning("Refused to remove non-custom entry", entry_id=entry_id)
            return False
        removed = self._resources.pop(entry_id, None) or self._contacts.pop(entry_id, None)
        return removed is not None

    def custom_entries(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "resources": [r.to_dict() for r in self._resources.values() if r.id.startswith(CUSTOM_ID_PREFIX)],
            "contacts": [c.to_dict() for c in self._contacts.values() if c.id.startswith(CUSTOM_ID_PREFIX)],
        }

    # =========================================================================
    # Safety plans
    # =========================================================================

    def create_safety_plan(self, user_id: str, **sections: Any) -> SafetyPlan:
        """
        Create or replace a safety plan.

        Passing an existing plan id replaces that plan. The new plan is
        stamped with the current time.
        """
        now = self._clock.now()
        plan_id = sections.pop("id", None)
        existing = self._safety_plans.get(plan_id) if plan_id else None
        plan = SafetyPlan(user_id=user_id, **sections)
        if plan_id:
            plan.id = plan_id
        plan.created_at = existing.created_at if existing else now
        plan.updated_at = now
        self._safety_plans[plan.id] = plan
        logger.info("Safety plan saved", plan_id=plan.id, replaced=existing is not None)
        return plan

    def restore_safety_plan(self, plan: SafetyPlan) -> None:
        """Put back a plan read from persistent storage."""
        self._safety_plans[plan.id] = plan

    def get_active_safety_plan(self, user_id: Optional[str] = None) -> Optional[SafetyPlan]:
        """Most recently updated active plan, optionally for one user."""
        active = [
            p for p in self._safety_plans.values()
            if p.is_active and (user_id is None or p.user_id == user_id)
        ]
        if not active:
            return None
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return max(active, key=lambda p: p.updated_at or epoch)

    def export_safety_plan(self, plan_id: str) -> Optional[str]:
        """Render a safety plan as plain text, None for an unknown id."""
        plan = self._safety_plans.get(plan_id)
        if plan is None:
            return None

        updated = plan.updated_at.date().isoformat() if plan.updated_at else "never"
        lines = ["PERSONAL SAFETY PLAN", f"Last Updated: {updated}"]
        sections = (
            ("WARNING SIGNALS", plan.warning_signs),
            ("COPING STRATEGIES", plan.coping_strategies),
            ("SOCIAL SUPPORT CONTACTS", plan.social_contacts),
            ("PROFESSIONAL CONTACTS", plan.professional_contacts),
            ("ENVIRONMENT SAFETY STEPS", plan.safe_environment_steps),
            ("EMERGENCY CONTACTS", plan.emergency_contacts),
        )
        if plan.reasons_for_living:
            sections += (("REASONS FOR LIVING", plan.reasons_for_living),)
        for heading, items in sections:
            lines.append("")
            lines.append(f"{heading}:")
            lines.extend(f"• {item}" for item in items)

        lines.extend([
            "",
            "CRISIS HOTLINES:",
            "• 988 Suicide & Crisis Lifeline",
            "• Text HOME to 741741 (Crisis Text Line)",
            "• 911 for emergencies",
            "",
            "Remember: This feeling is temporary. You have support. Help is available.",
        ])
        return "\n".join(lines)


def _custom_id() -> str:
    return f"{CUSTOM_ID_PREFIX}{uuid4().hex[:12]}"


def _resource_from_dict(data: dict[str, Any]) -> CrisisResource:
    return CrisisResource(
        id=data["id"],
        title=data["title"],
        type=ResourceType(data["type"]),
        urgency=ResourceUrgency(data["urgency"]),
        content=data.get("content", ""),
        category=data.get("category", ""),
        instructions=tuple(data.get("instructions", ())),
        phone_number=data.get("phone_number"),
    )


def _contact_from_dict(data: dict[str, Any]) -> EmergencyContact:
    return EmergencyContact(
        id=data["id"],
        name=data["name"],
        phone=data["phone"],
        type=ContactType(data["type"]),
        available_24_7=bool(data.get("available_24_7", False)),
        description=data.get("description", ""),
        instructions=data.get("instructions", ""),
        text_only=bool(data.get("text_only", False)),
    )
