"""
HARBOR Error Taxonomy

Every failure mode of the engine has a named exception and a fixed
recovery policy. Only EscalationDispatchFailure is ever surfaced to
the user-facing collaborator; the rest are recovered where raised.

SAFETY-CRITICAL: No failure below risk scoring may make the critical
resource set unreachable.
"""

from typing import Optional


class HarborError(Exception):
    """Base class for engine errors."""


class InputError(HarborError):
    """
    Malformed scoring input.

    Recovered by the risk scorer, which returns a SAFE assessment
    with zero confidence.
    """


class AssignmentExhausted(HarborError):
    """
    No counselor is available.

    Recovered by fallback assignment and a capacity warning.
    """

    def __init__(self, priority: str) -> None:
        super().__init__(f"No counselor available for {priority} priority session")
        self.priority = priority


class EscalationDispatchFailure(HarborError):
    """
    An emergency action could not be dispatched.

    SAFETY_NOTE: Must never fail silently. The session emits a
    dispatch-failed event carrying manual-dial contacts.
    """

    def __init__(self, action: str, reason: str, session_id: Optional[str] = None) -> None:
        super().__init__(f"Failed to dispatch {action}: {reason}")
        self.action = action
        self.reason = reason
        self.session_id = session_id


class PersistenceFailure(HarborError):
    """
    A storage write failed.

    Logged and retried by the persistence adapter. Never raised
    to session callers.
    """


class SessionNotFound(HarborError):
    """
    Message addressed to an unknown or ended session.

    Dropped with a warning by the session service.
    """

    def __init__(self, session_id: str, reason: str = "unknown session") -> None:
        super().__init__(f"Session {session_id}: {reason}")
        self.session_id = session_id
        self.reason = reason
