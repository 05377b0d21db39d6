"""
Crisis session services package.

Session state machine, counselor directory, reply generation and
the process-wide session registry.
"""

from harbor.services.session.counselor_directory import (
    Assignment,
    CounselorDirectory,
    InMemoryCounselorDirectory,
)
from harbor.services.session.responder import (
    CLOSING_MESSAGE,
    RESPONSE_TEMPLATES,
    CounselorResponder,
)
from harbor.services.session.state_machine import (
    CrisisSession,
    SessionDependencies,
    SubmitOutcome,
)
from harbor.services.session.session_service import (
    CrisisSessionService,
    build_dependencies,
)

__all__ = [
    # Directory
    "Assignment",
    "CounselorDirectory",
    "InMemoryCounselorDirectory",
    # Responder
    "CLOSING_MESSAGE",
    "RESPONSE_TEMPLATES",
    "CounselorResponder",
    # State machine
    "CrisisSession",
    "SessionDependencies",
    "SubmitOutcome",
    # Service
    "CrisisSessionService",
    "build_dependencies",
]
