"""Domain errors raised by MailFlow services.

Services raise these unmodified; the HTTP layer maps them to status codes
(see main.register_exception_handlers). Nothing below the routers raises
HTTPException.
"""

from typing import Any, Dict, Optional


class MailflowError(Exception):
    """Base class for all domain errors."""

    error_code = "mailflow_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(MailflowError):
    """Referenced entity is missing, inactive, or belongs to another tenant.

    Cross-tenant lookups deliberately raise this instead of a permission error
    so one organization cannot probe for another organization's records.
    """

    error_code = "not_found"

    def __init__(self, entity: str, entity_id: Any = None, reason: Optional[str] = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, {"entity": entity, "id": entity_id} if entity_id is not None else None)
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(MailflowError):
    """Illegal mail item status change, or a write to a terminal item."""

    error_code = "invalid_transition"

    def __init__(self, message: str, current_status: Any = None, target_status: Any = None):
        details = {}
        if current_status is not None:
            details["current_status"] = getattr(current_status, "value", current_status)
        if target_status is not None:
            details["target_status"] = getattr(target_status, "value", target_status)
        super().__init__(message, details)
        self.current_status = current_status
        self.target_status = target_status


class RecordValidationError(MailflowError):
    """A required field is missing or a field value is not acceptable."""

    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class TenantMismatchError(MailflowError):
    """A write references a record owned by a different organization."""

    error_code = "tenant_mismatch"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field
