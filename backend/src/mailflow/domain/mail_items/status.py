"""MailItem status state machine.

State Flow:
    pending → notified → picked_up

Exception transitions (terminal):
    pending|notified → returned_to_sender | lost | other

Terminal States: picked_up, returned_to_sender, lost, other
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ..errors import InvalidTransitionError


class MailItemStatus(str, Enum):
    """Mail item status enumeration.

    Values are stored as-is in the mail_item_status database enum.
    """
    PENDING = "pending"
    NOTIFIED = "notified"
    PICKED_UP = "picked_up"
    RETURNED_TO_SENDER = "returned_to_sender"
    LOST = "lost"
    OTHER = "other"


INITIAL_STATUS = MailItemStatus.PENDING

EXCEPTION_STATUSES: FrozenSet[MailItemStatus] = frozenset({
    MailItemStatus.RETURNED_TO_SENDER,
    MailItemStatus.LOST,
    MailItemStatus.OTHER,
})

TERMINAL_STATUSES: FrozenSet[MailItemStatus] = frozenset({MailItemStatus.PICKED_UP}) | EXCEPTION_STATUSES

# Items still waiting in the mailroom
OPEN_STATUSES: FrozenSet[MailItemStatus] = frozenset({
    MailItemStatus.PENDING,
    MailItemStatus.NOTIFIED,
})

ALLOWED_TRANSITIONS: Dict[Optional[MailItemStatus], List[MailItemStatus]] = {
    None: [MailItemStatus.PENDING],
    MailItemStatus.PENDING: [
        MailItemStatus.NOTIFIED,
        MailItemStatus.RETURNED_TO_SENDER,
        MailItemStatus.LOST,
        MailItemStatus.OTHER,
    ],
    MailItemStatus.NOTIFIED: [
        MailItemStatus.PICKED_UP,
        MailItemStatus.RETURNED_TO_SENDER,
        MailItemStatus.LOST,
        MailItemStatus.OTHER,
    ],
    MailItemStatus.PICKED_UP: [],  # Terminal
    MailItemStatus.RETURNED_TO_SENDER: [],  # Terminal
    MailItemStatus.LOST: [],  # Terminal
    MailItemStatus.OTHER: [],  # Terminal
}


def _coerce(status: Optional[MailItemStatus | str]) -> Optional[MailItemStatus]:
    if status is None or isinstance(status, MailItemStatus):
        return status
    return MailItemStatus(status)


def can_transition(
    current_status: Optional[MailItemStatus | str],
    new_status: MailItemStatus | str,
) -> bool:
    """Check if a state transition is allowed without raising.

    Example:
        >>> can_transition(MailItemStatus.PENDING, MailItemStatus.NOTIFIED)
        True
        >>> can_transition(MailItemStatus.PENDING, MailItemStatus.PICKED_UP)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(_coerce(current_status), [])
    return _coerce(new_status) in allowed


def validate_transition(
    current_status: Optional[MailItemStatus | str],
    new_status: MailItemStatus | str,
) -> None:
    """Validate that a state transition is allowed.

    Raises:
        InvalidTransitionError: If transition is not allowed
    """
    current = _coerce(current_status)
    target = _coerce(new_status)
    if can_transition(current, target):
        return

    current_label = current.value if current else "new"
    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            f"Mail item is {current_label}; no further status changes are allowed",
            current_status=current,
            target_status=target,
        )
    raise InvalidTransitionError(
        f"Invalid transition: {current_label} -> {target.value}. "
        f"Allowed transitions from {current_label}: "
        f"{[s.value for s in get_allowed_transitions(current)]}",
        current_status=current,
        target_status=target,
    )


def get_allowed_transitions(status: Optional[MailItemStatus | str]) -> List[MailItemStatus]:
    """Get list of allowed target statuses from a given status."""
    return list(ALLOWED_TRANSITIONS.get(_coerce(status), []))


def is_terminal(status: MailItemStatus | str) -> bool:
    """True when no further transition is permitted from status."""
    return _coerce(status) in TERMINAL_STATUSES
