"""Audit log query endpoints.

Audit logs are immutable and cannot be created, updated, or deleted through
the API. Admins query the full log of their organization; staff see the
recent activity feed shown on the dashboard.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.audit_log import AuditAction, AuditLog
from ..models.base import ensure_utc
from ..models.user_profile import UserProfile
from .schemas import ActivityItem, AuditLogListResponse


router = APIRouter(prefix="/audit", tags=["Audit Logs"])


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="Query audit logs (ADMIN only)",
)
def query_audit_logs(
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    table_name: Optional[str] = Query(None, description="Filter by table (e.g. mail_items)"),
    record_id: Optional[int] = Query(None, description="Filter by affected record"),
    start_date: Optional[datetime] = Query(None, description="Minimum created_at (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum created_at (ISO 8601)"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(50, ge=1, le=100, description="Entries per page (max 100)"),
) -> AuditLogListResponse:
    """Query audit logs of the caller's organization, newest first."""
    query = db.query(AuditLog).filter(AuditLog.organization_id == current_user.organization_id)

    if action:
        query = query.filter(AuditLog.action == action)
    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    if record_id is not None:
        query = query.filter(AuditLog.record_id == record_id)
    if start_date:
        query = query.filter(AuditLog.created_at >= ensure_utc(start_date))
    if end_date:
        query = query.filter(AuditLog.created_at <= ensure_utc(end_date))

    total = query.count()

    offset = (page - 1) * per_page
    entries = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(per_page)
        .all()
    )

    return AuditLogListResponse(entries=entries, total=total, page=page, per_page=per_page)


@router.get("/recent", response_model=List[ActivityItem], summary="Recent activity feed")
def recent_activity(
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
    limit: int = Query(10, ge=1, le=50),
) -> List[ActivityItem]:
    entries = (
        db.query(AuditLog)
        .options(joinedload(AuditLog.user))
        .filter(AuditLog.organization_id == current_user.organization_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        ActivityItem(
            id=entry.id,
            action=entry.action,
            table_name=entry.table_name,
            record_id=entry.record_id,
            user_name=entry.user.full_name if entry.user else None,
            details=entry.details,
            created_at=entry.created_at,
        )
        for entry in entries
    ]
