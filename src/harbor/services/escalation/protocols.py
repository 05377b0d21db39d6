"""
Emergency Protocols

Protocol definitions for each emergency action and the dispatcher
that carries an action out once the coordinator has fired it.

SAFETY-CRITICAL: Dial actions are simulated. A dispatcher that cannot
carry out an action raises EscalationDispatchFailure, which the
session turns into a visible manual-dial event. Nothing here may
fail silently.
"""

from abc import ABC, abstractmethod
from typing import Optional

from harbor.config.logging_config import get_logger
from harbor.domain.enums.resources import EmergencyAction
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.emergency import EmergencyEvent, EmergencyProtocol
from harbor.errors import EscalationDispatchFailure
from harbor.infrastructure.transport.base import MessageTransport

logger = get_logger(__name__)


EMERGENCY_PROTOCOLS: dict[EmergencyAction, EmergencyProtocol] = {
    EmergencyAction.AUTO_DIAL_988: EmergencyProtocol(
        trigger="imminent_suicide_risk",
        action=EmergencyAction.AUTO_DIAL_988,
        message=(
            "EMERGENCY: I need to connect you with crisis support immediately. "
            "I'm initiating a call to the 988 Suicide & Crisis Lifeline. "
            "If you are in immediate danger, please call 988 directly."
        ),
        immediate=True,
        severity=SeverityLevel.CRITICAL,
        service_name="988 Suicide & Crisis Lifeline",
        service_number="988",
    ),
    EmergencyAction.AUTO_DIAL_911: EmergencyProtocol(
        trigger="substance_overdose",
        action=EmergencyAction.AUTO_DIAL_911,
        message=(
            "MEDICAL EMERGENCY: Based on what you've shared, this is a medical "
            "emergency. I'm calling 911. Please stay where you are if you can."
        ),
        immediate=True,
        severity=SeverityLevel.CRITICAL,
        service_name="Emergency Services",
        service_number="911",
    ),
    EmergencyAction.SAFETY_PROTOCOL: EmergencyProtocol(
        trigger="safety_concern",
        action=EmergencyAction.SAFETY_PROTOCOL,
        message=(
            "SAFETY CONCERN: I'm concerned about your safety. Let me help you "
            "connect with specialized support. The National Domestic Violence "
            "Hotline is 1-800-799-7233, and 911 is available if you are in danger."
        ),
        immediate=True,
        severity=SeverityLevel.HIGH,
        service_name="National Domestic Violence Hotline",
        service_number="1-800-799-7233",
    ),
    EmergencyAction.SPECIALIST_HANDOFF: EmergencyProtocol(
        trigger="sustained_high_risk",
        action=EmergencyAction.SPECIALIST_HANDOFF,
        message=(
            "I'm bringing in a crisis specialist to support you. They will join "
            "this conversation in a moment. You're not alone."
        ),
        immediate=False,
        severity=SeverityLevel.HIGH,
    ),
}


def get_protocol(action: EmergencyAction) -> EmergencyProtocol:
    return EMERGENCY_PROTOCOLS[action]


class EmergencyDispatcher(ABC):
    """
    Carries out a fired emergency action.

    Implementations raise EscalationDispatchFailure when the action
    cannot be carried out.
    """

    @abstractmethod
    async def dispatch(self, event: EmergencyEvent, protocol: EmergencyProtocol) -> None:
        """Dispatch the action for an emergency event."""
        pass


class SimulatedEmergencyDispatcher(EmergencyDispatcher):
    """
    Simulated dispatcher.

    Dial actions are logged as simulated calls and recorded in
    `dispatched`. Dispatch requires a connected transport, since the
    user-facing collaborator is what actually places the call.

    Usage:
        dispatcher = SimulatedEmergencyDispatcher(transport)
        await dispatcher.dispatch(event, get_protocol(event.action))
    """

    def __init__(self, transport: Optional[MessageTransport] = None) -> None:
        self._transport = transport
        self.dispatched: list[EmergencyEvent] = []

    async def dispatch(self, event: EmergencyEvent, protocol: EmergencyProtocol) -> None:
        if self._transport is None:
            raise EscalationDispatchFailure(
                event.action.value, "no transport available", event.session_id,
            )
        if not self._transport.connected:
            raise EscalationDispatchFailure(
                event.action.value, "transport disconnected", event.session_id,
            )

        if event.is_dial:
            logger.warning(
                "Simulated emergency call initiated",
                session_id=event.session_id,
                service=protocol.service_name,
                number=protocol.service_number,
                severity="critical",
            )
        else:
            logger.info(
                "Emergency protocol dispatched",
                session_id=event.session_id,
                action=event.action.value,
            )
        self.dispatched.append(event)
