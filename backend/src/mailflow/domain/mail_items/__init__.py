"""Mail item domain - item enumerations and the status state machine."""

from .status import (
    MailItemStatus,
    INITIAL_STATUS,
    TERMINAL_STATUSES,
    EXCEPTION_STATUSES,
    OPEN_STATUSES,
    ALLOWED_TRANSITIONS,
    can_transition,
    validate_transition,
    get_allowed_transitions,
    is_terminal,
)
from .types import Carrier, MailItemType

__all__ = [
    "MailItemStatus",
    "INITIAL_STATUS",
    "TERMINAL_STATUSES",
    "EXCEPTION_STATUSES",
    "OPEN_STATUSES",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "validate_transition",
    "get_allowed_transitions",
    "is_terminal",
    "Carrier",
    "MailItemType",
]
