"""Tenancy module - organization context, isolation guards and settings.

This module provides:
- Context resolution of the current organization and mailroom
- Write-time rejection of cross-organization references
- Organization settings schema validation and management
- Cross-tenant access prevention (404, not 403)
"""

from .context import MailroomContext, resolve_context
from .schemas import OrganizationSettings, NotificationSettings

__all__ = [
    "MailroomContext",
    "resolve_context",
    "OrganizationSettings",
    "NotificationSettings",
]
