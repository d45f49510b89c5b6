"""Pydantic schemas for audit log endpoints.

Audit logs are read-only (no create/update/delete operations).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.audit_log import AuditAction


class AuditLogResponse(BaseModel):
    """Response schema for audit log entries."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Audit log entry identifier")
    organization_id: int = Field(..., description="Organization ID")
    user_id: Optional[int] = Field(None, description="Profile that performed the action (None for system)")
    action: AuditAction = Field(..., description="Event action (create, update, ...)")
    table_name: Optional[str] = Field(None, description="Table of the affected record")
    record_id: Optional[int] = Field(None, description="ID of the affected record")
    details: Optional[dict] = Field(None, description="Additional context as JSON")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent header")
    created_at: datetime = Field(..., description="Event timestamp")


class AuditLogListResponse(BaseModel):
    """Audit log query result with pagination metadata."""
    entries: list[AuditLogResponse] = Field(..., description="List of audit log entries")
    total: int = Field(..., description="Total number of entries matching filters")
    page: int = Field(..., description="Current page number")
    per_page: int = Field(..., description="Entries per page")


class ActivityItem(BaseModel):
    """One line of the dashboard activity feed."""
    id: int
    action: AuditAction
    table_name: Optional[str] = None
    record_id: Optional[int] = None
    user_name: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime
