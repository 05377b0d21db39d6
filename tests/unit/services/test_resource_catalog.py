"""
Unit Tests for Resource Catalog

Tests the offline guarantee, ordering rules, custom entries and
safety plan export.
"""

import json

import pytest

from harbor.domain.enums.resources import ContactType, ResourceType, ResourceUrgency
from harbor.domain.enums.severity import SeverityLevel
from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.services.resources import ResourceCatalog


@pytest.fixture
def clock():
    return VirtualTimerService()


@pytest.fixture
def catalog(clock):
    return ResourceCatalog(clock=clock)


class TestOfflineGuarantee:
    """The critical set is always present with no network or cache."""

    def test_available_offline(self, catalog):
        assert catalog.is_available_offline()

    def test_at_least_three_contacts_including_988_and_911(self, catalog):
        contacts = catalog.get_emergency_contacts()
        phones = {c.phone for c in contacts}

        assert len(contacts) >= 3
        assert "988" in phones
        assert "911" in phones

    def test_critical_contacts(self, catalog):
        critical = catalog.get_critical_contacts()

        assert {c.id for c in critical} == {"988-lifeline", "crisis-text", "emergency-services"}
        assert all(c.critical for c in critical)

    def test_missing_extension_file_keeps_builtins(self, tmp_path):
        catalog = ResourceCatalog(extension_path=str(tmp_path / "missing.json"))

        assert catalog.is_available_offline()

    def test_broken_extension_file_keeps_builtins(self, tmp_path):
        path = tmp_path / "resources.json"
        path.write_text("{not json", encoding="utf-8")

        catalog = ResourceCatalog(extension_path=str(path))

        assert catalog.is_available_offline()
        assert len(catalog.get_emergency_contacts()) == 6

    def test_extension_cannot_shadow_critical_entries(self, tmp_path):
        path = tmp_path / "resources.json"
        path.write_text(json.dumps({
            "resources": [
                {
                    "id": "emergency-988",
                    "title": "Not the lifeline",
                    "type": "hotline",
                    "urgency": "helpful",
                },
                {
                    "id": "local-warmline",
                    "title": "Local Warmline",
                    "type": "hotline",
                    "urgency": "urgent",
                    "content": "Peer support line",
                    "phone_number": "555-0100",
                },
            ],
            "contacts": [
                {"id": "emergency-services", "name": "Fake", "phone": "000", "type": "emergency"},
            ],
        }), encoding="utf-8")

        catalog = ResourceCatalog(extension_path=str(path))
        titles = {r.id: r.title for r in catalog.resources}
        contacts = {c.id: c.phone for c in catalog.get_emergency_contacts()}

        assert titles["emergency-988"] == "988 Suicide & Crisis Lifeline"
        assert titles["local-warmline"] == "Local Warmline"
        assert contacts["emergency-services"] == "911"


class TestLookup:
    """Tests for resource and contact lookup."""

    def test_contacts_sorted_24_7_first_then_type(self, catalog):
        ids = [c.id for c in catalog.get_emergency_contacts()]

        assert ids == [
            "emergency-services",
            "988-lifeline",
            "crisis-text",
            "domestic-violence-hotline",
            "samhsa-helpline",
            "nami-helpline",
        ]

    def test_get_by_urgency_and_type(self, catalog):
        immediate = catalog.get(ResourceUrgency.IMMEDIATE)
        breathing = catalog.get("breathing")

        assert all(r.urgency == ResourceUrgency.IMMEDIATE for r in immediate)
        assert [r.id for r in breathing] == ["breathing-4-7-8"]

    def test_unknown_selector_returns_empty(self, catalog):
        assert catalog.get("teleportation") == []

    def test_immediate_resources_include_hotlines(self, catalog):
        ids = [r.id for r in catalog.get_immediate_resources()]

        assert ids[:3] == ["emergency-988", "emergency-911", "crisis-text-line"]

    def test_recommended_contacts_narrow_with_severity(self, catalog):
        critical = catalog.get_recommended_contacts(SeverityLevel.CRITICAL)
        moderate = catalog.get_recommended_contacts(SeverityLevel.MODERATE)

        assert all(c.type in (ContactType.EMERGENCY, ContactType.CRISIS_LINE) for c in critical)
        assert len(moderate) == len(catalog.get_emergency_contacts())

    def test_hotlines_exclude_professional(self, catalog):
        assert "samhsa-helpline" not in {c.id for c in catalog.get_crisis_hotlines()}

    def test_search_is_case_insensitive(self, catalog):
        lower = [r.id for r in catalog.search_resources("breathing")]
        upper = [r.id for r in catalog.search_resources("BREATHING")]

        assert "breathing-4-7-8" in lower
        assert lower == upper

    def test_empty_search_returns_nothing(self, catalog):
        assert catalog.search_resources("   ") == []


class TestCustomEntries:
    """Tests for runtime custom entries."""

    def test_add_and_remove_custom_resource(self, catalog):
        resource = catalog.add_custom_resource(
            title="Call my sister",
            resource_type=ResourceType.SELF_HELP,
            urgency=ResourceUrgency.URGENT,
            content="She always picks up",
        )

        assert resource.id.startswith("custom-")
        assert catalog.custom_entries()["resources"][0]["title"] == "Call my sister"

        assert catalog.remove_custom(resource.id)
        assert catalog.custom_entries()["resources"] == []

    def test_custom_contact_sorted_after_builtins(self, catalog):
        contact = catalog.add_custom_contact(name="Sam", phone="555-0101")

        assert catalog.get_emergency_contacts()[-1].id == contact.id

    def test_critical_entries_cannot_be_removed(self, catalog):
        assert not catalog.remove_custom("988-lifeline")
        assert not catalog.remove_custom("emergency-911")
        assert catalog.is_available_offline()

    def test_remove_unknown_custom_entry(self, catalog):
        assert not catalog.remove_custom("custom-doesnotexist")


class TestSafetyPlans:
    """Tests for safety plan storage and export."""

    def test_create_and_export(self, catalog):
        plan = catalog.create_safety_plan(
            "user-1",
            warning_signs=["Isolating from friends"],
            coping_strategies=["Go for a walk"],
        )

        text = catalog.export_safety_plan(plan.id)

        assert text.startswith("PERSONAL SAFETY PLAN")
        assert "Last Updated: 2024-01-01" in text
        assert "• Isolating from friends" in text
        assert "• 988 Suicide & Crisis Lifeline" in text
        assert "REASONS FOR LIVING" not in text

    def test_reasons_for_living_exported_when_present(self, catalog):
        plan = catalog.create_safety_plan("user-1", reasons_for_living=["My dog"])

        assert "REASONS FOR LIVING:\n• My dog" in catalog.export_safety_plan(plan.id)

    def test_export_unknown_plan(self, catalog):
        assert catalog.export_safety_plan("plan-missing") is None

    @pytest.mark.asyncio
    async def test_replace_keeps_id_and_created_at(self, catalog, clock):
        original = catalog.create_safety_plan("user-1", warning_signs=["a"])
        await clock.advance(3600)

        replaced = catalog.create_safety_plan("user-1", id=original.id, warning_signs=["b"])

        assert replaced.id == original.id
        assert replaced.created_at == original.created_at
        assert replaced.updated_at > original.updated_at
        assert catalog.get_active_safety_plan("user-1").warning_signs == ["b"]

    @pytest.mark.asyncio
    async def test_active_plan_is_most_recent(self, catalog, clock):
        catalog.create_safety_plan("user-1", warning_signs=["old"])
        await clock.advance(60)
        newer = catalog.create_safety_plan("user-1", warning_signs=["new"])
        catalog.create_safety_plan("user-2", warning_signs=["other"])

        assert catalog.get_active_safety_plan("user-1").id == newer.id
        assert catalog.get_active_safety_plan("nobody") is None
