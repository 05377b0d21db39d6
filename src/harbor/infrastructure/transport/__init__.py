"""Session event transport package."""

from harbor.infrastructure.transport.events import EventType, OutboundEvent
from harbor.infrastructure.transport.base import (
    ConnectionObserver,
    MessageTransport,
    Subscription,
)
from harbor.infrastructure.transport.memory import InMemoryTransport, QueueSubscription
from harbor.infrastructure.transport.websocket import forward_events

__all__ = [
    # Events
    "EventType",
    "OutboundEvent",
    # Interfaces
    "ConnectionObserver",
    "MessageTransport",
    "Subscription",
    # Implementations
    "InMemoryTransport",
    "QueueSubscription",
    "forward_events",
]
