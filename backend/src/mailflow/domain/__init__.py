"""Domain layer - enums, state machines and errors shared across modules."""

from .errors import (
    MailflowError,
    NotFoundError,
    InvalidTransitionError,
    RecordValidationError,
    TenantMismatchError,
)

__all__ = [
    "MailflowError",
    "NotFoundError",
    "InvalidTransitionError",
    "RecordValidationError",
    "TenantMismatchError",
]
