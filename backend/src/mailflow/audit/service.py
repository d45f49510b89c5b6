"""Audit logging service.

Every mutation made through the API is recorded here as an immutable
audit_logs row. Services call log_audit_event directly; routers that have the
request at hand use log_from_request to capture client details.

Audit entries (table_name / action):
- mail_items: create (intake), update (edit, status transitions)
- mail_rooms: create, update (including deactivation)
- user_profiles: create, update
- external_people: create, update
- organizations: update (profile, settings)
"""

from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..models.audit_log import AuditAction, AuditLog


def log_audit_event(
    db: Session,
    organization_id: int,
    action: AuditAction,
    user_id: Optional[int] = None,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Create an audit log entry.

    Args:
        db: Database session
        organization_id: Organization the event belongs to
        action: AuditAction (create, update, delete, ...)
        user_id: Profile that performed the action (None for system events)
        table_name: Table of the affected record (e.g. "mail_items")
        record_id: ID of the affected record
        details: Additional context as JSON (e.g. {"from": "pending", "to": "notified"})
        ip_address: Client IP address
        user_agent: Client User-Agent header

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            organization_id=ctx.organization_id,
            action=AuditAction.UPDATE,
            user_id=ctx.actor.id,
            table_name="mail_items",
            record_id=item.id,
            details={"from": "pending", "to": "notified"},
        )
    """
    audit_entry = AuditLog(
        organization_id=organization_id,
        user_id=user_id,
        action=action,
        table_name=table_name,
        record_id=record_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


def client_info(request: Request) -> Dict[str, Optional[str]]:
    """Client IP (honouring X-Forwarded-For) and User-Agent of a request."""
    ip_address = request.client.host if request.client else None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Use first IP in chain (original client)
        ip_address = forwarded_for.split(",")[0].strip()

    return {"ip_address": ip_address, "user_agent": request.headers.get("User-Agent")}


def log_from_request(
    db: Session,
    request: Request,
    organization_id: int,
    action: AuditAction,
    user_id: Optional[int] = None,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create an audit log entry extracting IP and User-Agent from the request.

    Example:
        @router.patch("/organization")
        def update_organization(request: Request, ...):
            ...
            log_from_request(
                db=db,
                request=request,
                organization_id=organization.id,
                action=AuditAction.UPDATE,
                user_id=current_user.id,
                table_name="organizations",
                record_id=organization.id,
                details={"fields": ["name"]},
            )
    """
    return log_audit_event(
        db=db,
        organization_id=organization_id,
        action=action,
        user_id=user_id,
        table_name=table_name,
        record_id=record_id,
        details=details,
        **client_info(request),
    )
