"""Emergency escalation services package."""

from harbor.services.escalation.coordinator import (
    DEFAULT_DEDUP_WINDOW_SECONDS,
    EscalationCoordinator,
)
from harbor.services.escalation.protocols import (
    EMERGENCY_PROTOCOLS,
    EmergencyDispatcher,
    SimulatedEmergencyDispatcher,
    get_protocol,
)

__all__ = [
    "EscalationCoordinator",
    "DEFAULT_DEDUP_WINDOW_SECONDS",
    # Protocols
    "EMERGENCY_PROTOCOLS",
    "get_protocol",
    # Dispatch
    "EmergencyDispatcher",
    "SimulatedEmergencyDispatcher",
]
