"""
Resource Endpoints

Read access to the offline resource catalog, custom entries and
safety plans.

SAFETY-CRITICAL: The immediate, contacts and offline endpoints never
touch the network or the database; they are served from the
compiled-in critical set.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from harbor.api.dependencies import get_catalog, get_session_service
from harbor.config.logging_config import get_logger
from harbor.domain.enums.resources import ContactType, ResourceType, ResourceUrgency
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.resource import SafetyPlan
from harbor.services.resources.catalog import ResourceCatalog
from harbor.services.session.session_service import CrisisSessionService

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models

class CustomResourceRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: ResourceType
    urgency: ResourceUrgency = ResourceUrgency.HELPFUL
    content: str = Field(..., min_length=1, max_length=2000)
    category: str = "Custom"
    instructions: list[str] = []
    phone_number: Optional[str] = None


class CustomContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=40)
    type: ContactType = ContactType.PERSONAL
    available_24_7: bool = False
    description: str = ""


class SafetyPlanRequest(BaseModel):
    """Safety plan sections; pass id to replace an existing plan."""

    user_id: str = Field(..., min_length=1, max_length=128)
    id: Optional[str] = None
    warning_signs: list[str] = []
    coping_strategies: list[str] = []
    social_contacts: list[str] = []
    professional_contacts: list[str] = []
    safe_environment_steps: list[str] = []
    emergency_contacts: list[str] = []
    reasons_for_living: list[str] = []


class OfflineStatusResponse(BaseModel):
    available: bool
    resource_count: int
    contact_count: int


# =============================================================================
# Catalog
# =============================================================================

@router.get("", summary="List resources")
async def list_resources(
    urgency: Optional[ResourceUrgency] = None,
    type: Optional[ResourceType] = None,
    catalog: ResourceCatalog = Depends(get_catalog),
) -> list[dict]:
    """All resources, or those matching one urgency or one type."""
    if urgency is not None:
        resources = catalog.get(urgency)
    elif type is not None:
        resources = catalog.get(type)
    else:
        resources = catalog.resources
    return [r.to_dict() for r in resources]


@router.get("/immediate", summary="Immediate crisis resources")
async def immediate_resources(catalog: ResourceCatalog = Depends(get_catalog)) -> list[dict]:
    return [r.to_dict() for r in catalog.get_immediate_resources()]


@router.get("/contacts", summary="Emergency contacts")
async def emergency_contacts(catalog: ResourceCatalog = Depends(get_catalog)) -> list[dict]:
    """All contacts, 24/7 first."""
    return [c.to_dict() for c in catalog.get_emergency_contacts()]


@router.get("/contacts/recommended", summary="Contacts for a severity level")
async def recommended_contacts(
    level: str = Query("moderate", pattern="^(safe|low|moderate|high|critical)$"),
    catalog: ResourceCatalog = Depends(get_catalog),
) -> list[dict]:
    contacts = catalog.get_recommended_contacts(SeverityLevel.from_label(level))
    return [c.to_dict() for c in contacts]


@router.get("/hotlines", summary="Crisis hotlines")
async def crisis_hotlines(catalog: ResourceCatalog = Depends(get_catalog)) -> list[dict]:
    return [c.to_dict() for c in catalog.get_crisis_hotlines()]


@router.get("/search", summary="Search resources")
async def search_resources(
    q: str = Query("", max_length=200),
    catalog: ResourceCatalog = Depends(get_catalog),
) -> list[dict]:
    """Case-insensitive search. An empty query returns nothing."""
    return [r.to_dict() for r in catalog.search_resources(q)]


@router.get("/offline", response_model=OfflineStatusResponse, summary="Offline availability")
async def offline_status(catalog: ResourceCatalog = Depends(get_catalog)) -> OfflineStatusResponse:
    return OfflineStatusResponse(
        available=catalog.is_available_offline(),
        resource_count=len(catalog.resources),
        contact_count=len(catalog.get_emergency_contacts()),
    )


# =============================================================================
# Custom entries
# =============================================================================

@router.get("/custom", summary="List custom entries")
async def list_custom(catalog: ResourceCatalog = Depends(get_catalog)) -> dict:
    return catalog.custom_entries()


@router.post("/custom", status_code=status.HTTP_201_CREATED, summary="Add a custom resource")
async def add_custom_resource(
    request: CustomResourceRequest,
    catalog: ResourceCatalog = Depends(get_catalog),
) -> dict:
    resource = catalog.add_custom_resource(
        title=request.title,
        resource_type=request.type,
        urgency=request.urgency,
        content=request.content,
        category=request.category,
        instructions=tuple(request.instructions),
        phone_number=request.phone_number,
    )
    return resource.to_dict()


@router.post("/custom/contacts", status_code=status.HTTP_201_CREATED, summary="Add a custom contact")
async def add_custom_contact(
    request: CustomContactRequest,
    catalog: ResourceCatalog = Depends(get_catalog),
) -> dict:
    contact = catalog.add_custom_contact(
        name=request.name,
        phone=request.phone,
        contact_type=request.type,
        available_24_7=request.available_24_7,
        description=request.description,
    )
    return contact.to_dict()


@router.delete("/custom/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a custom entry")
async def remove_custom(
    entry_id: str,
    catalog: ResourceCatalog = Depends(get_catalog),
) -> None:
    """Built-in entries cannot be removed; they report 404."""
    if not catalog.remove_custom(entry_id):
        logger.info("Custom entry not removed", entry_id=entry_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Custom entry {entry_id} not found",
        )


# =============================================================================
# Safety plans
# =============================================================================

safety_plan_router = APIRouter()


async def _active_plan(service: CrisisSessionService, user_id: str) -> Optional[SafetyPlan]:
    # Stored plan wins over the local copy; cache it for export
    plan = await service.persistence.get_active_safety_plan(user_id)
    if plan is not None:
        service.catalog.restore_safety_plan(plan)
        return plan
    return service.catalog.get_active_safety_plan(user_id)


@safety_plan_router.post("", status_code=status.HTTP_201_CREATED, summary="Create or replace a safety plan")
async def save_safety_plan(
    request: SafetyPlanRequest,
    service: CrisisSessionService = Depends(get_session_service),
) -> dict:
    """Saved locally and queued for durable storage."""
    sections = request.model_dump(exclude={"user_id", "id"})
    if request.id:
        sections["id"] = request.id
    plan = service.catalog.create_safety_plan(request.user_id, **sections)
    service.persistence.record_safety_plan(plan)
    return plan.to_dict()


@safety_plan_router.get("/{user_id}", summary="Active safety plan")
async def get_safety_plan(
    user_id: str,
    service: CrisisSessionService = Depends(get_session_service),
) -> dict:
    plan = await _active_plan(service, user_id)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active safety plan",
        )
    return plan.to_dict()


@safety_plan_router.get(
    "/{user_id}/export",
    response_class=PlainTextResponse,
    summary="Export the active safety plan as text",
)
async def export_safety_plan(
    user_id: str,
    service: CrisisSessionService = Depends(get_session_service),
) -> str:
    plan = await _active_plan(service, user_id)
    text = service.catalog.export_safety_plan(plan.id) if plan else None
    if text is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active safety plan",
        )
    return text
