"""FileActionRequest status state machine.

State Flow:
    PENDING → CANCELED | REJECTED
    PENDING → APPROVED → EXECUTED | FAILED | INVALIDATED

APPROVED is a claim marker held only while an approval is being executed.
Terminal States: CANCELED, REJECTED, EXECUTED, FAILED, INVALIDATED
"""

from enum import Enum
from typing import Dict, FrozenSet, List


class FileActionType(str, Enum):
    """Privileged file operation a request asks for."""
    MOVE = "MOVE"
    DELETE = "DELETE"


class FileActionRequestStatus(str, Enum):
    """File action request status enumeration.

    Values are stored as TEXT in the database and must match exactly.
    """
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"
    EXECUTED = "EXECUTED"
    FAILED = "FAILED"
    INVALIDATED = "INVALIDATED"


ALLOWED_TRANSITIONS: Dict[FileActionRequestStatus, List[FileActionRequestStatus]] = {
    FileActionRequestStatus.PENDING: [
        FileActionRequestStatus.APPROVED,
        FileActionRequestStatus.REJECTED,
        FileActionRequestStatus.CANCELED,
    ],
    FileActionRequestStatus.APPROVED: [
        FileActionRequestStatus.EXECUTED,
        FileActionRequestStatus.FAILED,
        FileActionRequestStatus.INVALIDATED,
    ],
    FileActionRequestStatus.REJECTED: [],
    FileActionRequestStatus.CANCELED: [],
    FileActionRequestStatus.EXECUTED: [],
    FileActionRequestStatus.FAILED: [],
    FileActionRequestStatus.INVALIDATED: [],
}

TERMINAL_STATUSES: FrozenSet[FileActionRequestStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(
    current_status: FileActionRequestStatus,
    new_status: FileActionRequestStatus
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current request status
        new_status: Target status to transition to

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in allowed]}"
        )


def can_transition(
    current_status: FileActionRequestStatus,
    new_status: FileActionRequestStatus
) -> bool:
    """Check if a state transition is allowed without raising exception.

    Example:
        >>> can_transition(FileActionRequestStatus.PENDING, FileActionRequestStatus.CANCELED)
        True
        >>> can_transition(FileActionRequestStatus.EXECUTED, FileActionRequestStatus.PENDING)
        False
    """
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])


def get_allowed_transitions(status: FileActionRequestStatus) -> List[FileActionRequestStatus]:
    """Get list of allowed transitions from a given status."""
    return ALLOWED_TRANSITIONS.get(status, [])


def is_terminal(status: FileActionRequestStatus) -> bool:
    """Return True if no further transition is permitted from status."""
    return status in TERMINAL_STATUSES
