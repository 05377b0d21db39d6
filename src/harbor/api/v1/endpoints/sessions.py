"""
Session Endpoints

Inbound API for crisis sessions: create, message, structured
assessment, typing, acknowledge escalation, end.

PRIVACY: Message text is never logged here; the session layer logs
lengths and levels only.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from harbor.api.dependencies import get_session_service, require_session
from harbor.config.logging_config import bind_session_context, get_logger
from harbor.domain.enums.severity import SessionPriority
from harbor.errors import SessionNotFound
from harbor.services.session.session_service import CrisisSessionService
from harbor.services.session.state_machine import SubmitOutcome

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models

class CreateSessionRequest(BaseModel):
    """Request to create a new crisis session."""

    user_id: str = Field(..., min_length=1, max_length=128, description="User or anonymous device id")
    priority: Optional[str] = Field(
        default=None,
        pattern="^(low|medium|high|critical)$",
        description="Initial priority",
    )


class CreateSessionResponse(BaseModel):
    """Response for session creation."""

    session_id: str
    state: str
    priority: str
    queue_position: Optional[int] = None


class SendMessageRequest(BaseModel):
    """Inbound user message."""

    text: str = Field(..., min_length=1, max_length=4000, description="User message")


class AssessmentRequest(BaseModel):
    """Structured assessment answers keyed by question id."""

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "answers": {"safety": 1, "self-harm-plan": 1, "self-harm-means": 1},
        }
    })

    answers: dict[str, Any] = Field(..., description="Question id to numeric answer")


class TypingRequest(BaseModel):
    is_typing: bool


class EndSessionRequest(BaseModel):
    reason: str = Field(default="user", pattern="^(user|operator)$")


class SubmitResponse(BaseModel):
    """Assessment result of an inbound message or answer set."""

    session_id: str
    level: str
    confidence: float
    indicators: list[str]
    priority: str
    state: str
    escalation: Optional[str] = None
    message_id: Optional[str] = None
    risk_factors: list[str] = []
    protective_factors: list[str] = []


class ActionResponse(BaseModel):
    session_id: str
    ok: bool
    state: Optional[str] = None


def _submit_response(service: CrisisSessionService, session_id: str, outcome: SubmitOutcome) -> SubmitResponse:
    snapshot = service.get_snapshot(session_id)
    return SubmitResponse(
        **outcome.assessment.to_dict(),
        session_id=session_id,
        priority=snapshot["priority"],
        state=snapshot["state"],
        escalation=outcome.event.action.value if outcome.event else None,
        message_id=outcome.message.id if outcome.message else None,
    )


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Session {session_id} not found",
    )


@router.post(
    "",
    response_model=CreateSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new crisis session",
)
async def create_session(
    request: CreateSessionRequest,
    service: CrisisSessionService = Depends(get_session_service),
) -> CreateSessionResponse:
    """
    Create a crisis session.

    The session enters the queue immediately and a counselor is
    assigned shortly after. Progress is streamed over the session's
    WebSocket.
    """
    priority = SessionPriority[request.priority.upper()] if request.priority else None
    session_id = await service.create_session(request.user_id, priority)
    bind_session_context(session_id, request.user_id)
    snapshot = service.get_snapshot(session_id)

    return CreateSessionResponse(
        session_id=session_id,
        state=snapshot["state"],
        priority=snapshot["priority"],
        queue_position=snapshot["queue_position"],
    )


@router.get(
    "/{session_id}",
    summary="Get session state",
)
async def get_session(
    session_id: str,
    service: CrisisSessionService = Depends(get_session_service),
) -> dict:
    """Live or recently ended session, messages included."""
    try:
        return service.get_snapshot(session_id)
    except SessionNotFound:
        raise _not_found(session_id)


@router.post(
    "/{session_id}/messages",
    response_model=SubmitResponse,
    summary="Send a user message",
)
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    service: CrisisSessionService = Depends(get_session_service),
) -> SubmitResponse:
    """
    Submit a user message.

    The message is scored and evaluated for escalation before this
    call returns; the counselor reply arrives later on the stream.
    """
    bind_session_context(session_id)
    outcome = await service.submit_message(session_id, request.text)
    if outcome is None:
        raise _not_found(session_id)
    return _submit_response(service, session_id, outcome)


@router.post(
    "/{session_id}/assessment",
    response_model=SubmitResponse,
    summary="Submit structured assessment answers",
)
async def submit_assessment(
    session_id: str,
    request: AssessmentRequest,
    service: CrisisSessionService = Depends(get_session_service),
) -> SubmitResponse:
    """Malformed answers score as safe with zero confidence."""
    bind_session_context(session_id)
    outcome = await service.submit_assessment_answers(session_id, request.answers)
    if outcome is None:
        raise _not_found(session_id)
    return _submit_response(service, session_id, outcome)


@router.post(
    "/{session_id}/typing",
    response_model=ActionResponse,
    summary="Report the user's typing state",
)
async def set_typing(
    session_id: str,
    request: TypingRequest,
    service: CrisisSessionService = Depends(get_session_service),
) -> ActionResponse:
    if not await service.set_user_typing(session_id, request.is_typing):
        raise _not_found(session_id)
    return ActionResponse(session_id=session_id, ok=True)


@router.post(
    "/{session_id}/acknowledge",
    response_model=ActionResponse,
    summary="Acknowledge an emergency action",
)
async def acknowledge_escalation(
    session_id: str,
    service: CrisisSessionService = Depends(get_session_service),
) -> ActionResponse:
    """Return an escalated session to normal exchange. Priority is kept."""
    crisis = require_session(service, session_id)
    ok = await service.acknowledge_escalation(session_id)
    return ActionResponse(session_id=session_id, ok=ok, state=crisis.state.value)


@router.post(
    "/{session_id}/end",
    response_model=ActionResponse,
    summary="End a session",
)
async def end_session(
    session_id: str,
    request: Optional[EndSessionRequest] = None,
    service: CrisisSessionService = Depends(get_session_service),
) -> ActionResponse:
    crisis = require_session(service, session_id)
    reason = request.reason if request else "user"
    ok = await service.end_session(session_id, reason=reason)
    logger.info("Session end requested", session_id=session_id, reason=reason)
    return ActionResponse(session_id=session_id, ok=ok, state=crisis.state.value)


@router.get(
    "/{session_id}/trends",
    summary="Risk trend for a session",
)
async def session_trends(
    session_id: str,
    days: int = 7,
    service: CrisisSessionService = Depends(get_session_service),
) -> dict:
    """Trend over recorded assessments; available after the session ends."""
    report = await service.persistence.trend_report(session_id=session_id, days=days)
    return report.to_dict()
