"""
Session WebSocket

Bidirectional channel for one crisis session: outbound events are
streamed in sequence order while inbound actions are routed to the
session service.

Inbound actions:
- user_message {text}
- typing {is_typing}
- assessment {answers}
- acknowledge
- end_session
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from harbor.config.logging_config import bind_session_context, clear_context, get_logger
from harbor.errors import SessionNotFound
from harbor.infrastructure.transport.websocket import forward_events
from harbor.services.session.session_service import CrisisSessionService

logger = get_logger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])

# Close code for an unknown or ended session
WS_SESSION_NOT_FOUND = 4404

MAX_MESSAGE_LENGTH = 4000


class SessionChannel:
    """
    Routes inbound WebSocket actions for one session.

    Usage:
        channel = SessionChannel(service, session_id)
        await channel.handle({"action": "user_message", "text": "hi"})
    """

    def __init__(self, service: CrisisSessionService, session_id: str) -> None:
        self.service = service
        self.session_id = session_id

    async def handle(self, data: dict) -> bool:
        """
        Handle one inbound action.

        Returns:
            False once the session has been ended by the client
        """
        action = data.get("action")

        if action == "user_message":
            text = str(data.get("text", "")).strip()[:MAX_MESSAGE_LENGTH]
            if text:
                await self.service.submit_message(self.session_id, text)
        elif action == "typing":
            await self.service.set_user_typing(self.session_id, bool(data.get("is_typing")))
        elif action == "assessment":
            answers = data.get("answers")
            await self.service.submit_assessment_answers(
                self.session_id,
                answers if isinstance(answers, dict) else {},
            )
        elif action == "acknowledge":
            await self.service.acknowledge_escalation(self.session_id)
        elif action == "end_session":
            await self.service.end_session(self.session_id)
            return False
        else:
            logger.warning("Unknown action", action=action, session_id=self.session_id)
        return True


async def _receive_loop(websocket: WebSocket, channel: SessionChannel) -> None:
    while True:
        try:
            data = await websocket.receive_json()
        except ValueError:
            await websocket.send_json({"type": "error", "detail": "invalid JSON"})
            continue
        if not isinstance(data, dict):
            await websocket.send_json({"type": "error", "detail": "expected an object"})
            continue
        if not await channel.handle(data):
            return


@router.websocket("/sessions/{session_id}")
async def session_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for a crisis session.

    The session must already exist (POST /sessions). Events published
    while no client is attached stay in the session's event history;
    the connected message carries the current snapshot.
    """
    service: CrisisSessionService = websocket.app.state.session_service

    try:
        crisis = service.get_session(session_id)
    except SessionNotFound as e:
        logger.info("WebSocket refused", session_id=session_id, reason=e.reason)
        await websocket.close(code=WS_SESSION_NOT_FOUND)
        return

    await websocket.accept()
    bind_session_context(session_id, crisis.session.user_id)
    subscription = service.transport.subscribe(session_id)
    channel = SessionChannel(service, session_id)

    try:
        await websocket.send_json({
            "type": "connected",
            "session_id": session_id,
            "session": crisis.snapshot(),
        })

        outbound = asyncio.create_task(forward_events(websocket, subscription))
        inbound = asyncio.create_task(_receive_loop(websocket, channel))
        done, _ = await asyncio.wait(
            {outbound, inbound},
            return_when=asyncio.FIRST_COMPLETED,
        )
        if inbound in done and outbound not in done and inbound.exception() is None:
            # Let the stream deliver session:ended before closing
            await asyncio.wait({outbound}, timeout=1.0)
        for task in (outbound, inbound):
            if not task.done():
                task.cancel()
        for task in (outbound, inbound):
            if task.done() and not task.cancelled() and task.exception() is not None:
                exc = task.exception()
                if not isinstance(exc, WebSocketDisconnect):
                    raise exc

        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()

    except WebSocketDisconnect:
        logger.info("Client disconnected", session_id=session_id)
    finally:
        subscription.cancel()
        clear_context()
