"""Interview session status enum and transition rules.

Pure domain logic with no external dependencies.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Interview session lifecycle. Status only moves forward."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# IN_PROGRESS -> IN_PROGRESS is allowed: every answer save re-asserts it.
TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.DRAFT: frozenset({SessionStatus.IN_PROGRESS}),
    SessionStatus.IN_PROGRESS: frozenset({SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset(),
}


def can_transition(current: SessionStatus | str, target: SessionStatus | str) -> bool:
    """Return True if a session in ``current`` may be written with ``target``."""
    return SessionStatus(target) in TRANSITIONS[SessionStatus(current)]


def is_terminal(status: SessionStatus | str) -> bool:
    return not TRANSITIONS[SessionStatus(status)]
