"""FastAPI router for the current context and organization management.

This module provides endpoints for:
- GET /context - Resolved organization and mailroom for the caller
- GET /organization - Current organization profile
- PATCH /organization - Update organization profile (ADMIN only)
- GET /organization/settings - Settings with defaults applied
- PATCH /organization/settings - Deep-merge settings update (ADMIN only)
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..audit.service import log_from_request
from ..auth.dependencies import get_current_user, require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..dependencies import get_context
from ..domain.errors import NotFoundError, RecordValidationError
from ..models.audit_log import AuditAction
from ..models.mail_room import MailRoom
from ..models.organization import Organization
from ..models.user_profile import UserProfile
from .context import MailroomContext
from .schemas import (
    ContextResponse,
    MailRoomSummary,
    OrganizationResponse,
    OrganizationSettings,
    OrganizationSettingsUpdate,
    OrganizationUpdate,
)
from .settings import get_organization_settings, update_organization_settings


router = APIRouter(tags=["Organization"])


def _get_organization(db: Session, user: UserProfile) -> Organization:
    organization = db.get(Organization, user.organization_id)
    if organization is None:
        raise NotFoundError("Organization", user.organization_id)
    return organization


@router.get("/context", response_model=ContextResponse)
def get_current_context(
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> ContextResponse:
    """Resolved organization and mailroom, plus the mailrooms the caller can switch to."""
    mail_rooms = (
        db.query(MailRoom)
        .filter(MailRoom.organization_id == ctx.organization_id, MailRoom.is_active.is_(True))
        .order_by(MailRoom.name)
        .all()
    )
    return ContextResponse(
        organization=OrganizationResponse.model_validate(ctx.organization),
        mail_room=MailRoomSummary.model_validate(ctx.mail_room) if ctx.mail_room else None,
        available_mail_rooms=[MailRoomSummary.model_validate(room) for room in mail_rooms],
        user_id=ctx.actor.id,
        role=ctx.actor_role.value,
    )


@router.get("/organization", response_model=OrganizationResponse)
def get_organization(
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> Organization:
    return _get_organization(db, current_user)


@router.patch("/organization", response_model=OrganizationResponse)
def update_organization(
    update: OrganizationUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> Organization:
    """Update the organization profile (ADMIN only)."""
    organization = _get_organization(db, admin_user)

    changes = update.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise RecordValidationError("name cannot be cleared", field="name")
    for field, value in changes.items():
        setattr(organization, field, value)
    db.flush()

    log_from_request(
        db=db,
        request=request,
        organization_id=organization.id,
        action=AuditAction.UPDATE,
        user_id=admin_user.id,
        table_name="organizations",
        record_id=organization.id,
        details={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(organization)
    return organization


@router.get("/organization/settings", response_model=OrganizationSettings)
def get_settings_document(
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> OrganizationSettings:
    """Organization settings with defaults applied for missing values.

    Available to all authenticated users within the organization.
    """
    return get_organization_settings(_get_organization(db, current_user))


@router.patch("/organization/settings", response_model=OrganizationSettings)
def update_settings_document(
    settings_update: OrganizationSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> OrganizationSettings:
    """Deep-merge a partial settings update (ADMIN only).

    Example Request:
        PATCH /organization/settings
        {"notifications": {"enable_sms": true}, "aging_threshold_days": 7}
    """
    organization = _get_organization(db, admin_user)
    validated = update_organization_settings(db, organization, settings_update)

    log_from_request(
        db=db,
        request=request,
        organization_id=organization.id,
        action=AuditAction.UPDATE,
        user_id=admin_user.id,
        table_name="organizations",
        record_id=organization.id,
        details={"settings": settings_update.model_dump(mode="json", exclude_none=True)},
    )
    db.commit()
    return validated
