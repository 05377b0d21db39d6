"""
WebSocket Event Stream

Forwards one session's outbound events to a WebSocket client in
sequence order.
"""

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from harbor.config.logging_config import get_logger
from harbor.infrastructure.metrics import WEBSOCKET_CONNECTIONS
from harbor.infrastructure.transport.base import Subscription
from harbor.infrastructure.transport.events import EventType

logger = get_logger(__name__)


async def forward_events(websocket: WebSocket, subscription: Subscription) -> int:
    """
    Send every event on a subscription to a WebSocket.

    Returns when the session closes, the subscription is cancelled or
    the client goes away.

    Returns:
        Number of events sent
    """
    sent = 0
    WEBSOCKET_CONNECTIONS.inc()
    try:
        async for event in subscription:
            if websocket.client_state != WebSocketState.CONNECTED:
                break
            await websocket.send_json(event.to_dict())
            sent += 1
            if event.type == EventType.SESSION_ENDED:
                break
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected", session_id=subscription.session_id)
    finally:
        WEBSOCKET_CONNECTIONS.dec()
        subscription.cancel()
    return sent
