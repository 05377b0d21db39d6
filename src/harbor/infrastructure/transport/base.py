"""
Message Transport Interface

Abstract bidirectional channel between crisis sessions and the
user-facing collaborator.

ARCHITECTURE: Subscriptions are per session and end when the session
is closed, so no handler outlives its session. Connectivity changes
are reported to registered ConnectionObserver instances.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from harbor.infrastructure.transport.events import OutboundEvent


class ConnectionObserver(ABC):
    """Receives transport connectivity changes."""

    @abstractmethod
    async def on_connection_lost(self) -> None:
        pass

    @abstractmethod
    async def on_connection_restored(self) -> None:
        pass


class Subscription(ABC):
    """
    Ordered event stream for one session.

    Iteration ends when the session is closed or the subscription
    is cancelled.
    """

    session_id: str

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[OutboundEvent]:
        pass

    @abstractmethod
    async def next_event(self, timeout: Optional[float] = None) -> Optional[OutboundEvent]:
        """Next event, or None when closed or timed out."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        pass


class MessageTransport(ABC):
    """
    Outbound channel for session events.

    Implementations must deliver at least once and preserve
    per-session order.
    """

    @property
    @abstractmethod
    def connected(self) -> bool:
        """Whether the collaborator is currently reachable."""
        pass

    @abstractmethod
    async def publish(self, event: OutboundEvent) -> OutboundEvent:
        """
        Publish an event.

        Returns:
            The event with its per-session sequence number
        """
        pass

    @abstractmethod
    def open_session(self, session_id: str) -> None:
        """Register a session so it receives connectivity events."""
        pass

    @abstractmethod
    def subscribe(self, session_id: str) -> Subscription:
        """Open an ordered event stream for a session."""
        pass

    @abstractmethod
    def close_session(self, session_id: str) -> None:
        """End every subscription for a session."""
        pass

    @abstractmethod
    def add_connection_observer(self, observer: ConnectionObserver) -> None:
        pass

    @abstractmethod
    def remove_connection_observer(self, observer: ConnectionObserver) -> None:
        pass
