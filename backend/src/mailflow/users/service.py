"""User profile management.

A profile's default mailroom must belong to the profile's own organization.
The check happens here with a clear error, and again at flush time in
tenancy.guards for writes that bypass this service.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..auth.roles import UserRole
from ..domain.errors import NotFoundError, RecordValidationError, TenantMismatchError
from ..models.audit_log import AuditAction
from ..models.mail_room import MailRoom
from ..models.user_profile import UserProfile
from .schemas import UserProfileCreate

logger = logging.getLogger(__name__)


def _check_mail_room(db: Session, organization_id: int, mail_room_id: Optional[int]) -> None:
    if mail_room_id is None:
        return
    mail_room = db.get(MailRoom, mail_room_id)
    if mail_room is None:
        raise NotFoundError("MailRoom", mail_room_id)
    if mail_room.organization_id != organization_id:
        raise TenantMismatchError(
            "mail_room_id references a MailRoom of another organization",
            field="mail_room_id",
        )
    if not mail_room.is_active:
        raise NotFoundError("MailRoom", mail_room_id, reason="inactive")


def list_user_profiles(
    db: Session,
    organization_id: int,
    role: Optional[UserRole] = None,
    active_only: bool = False,
    search: Optional[str] = None,
) -> List[UserProfile]:
    query = db.query(UserProfile).filter(UserProfile.organization_id == organization_id)
    if role is not None:
        query = query.filter(UserProfile.role == role)
    if active_only:
        query = query.filter(UserProfile.is_active.is_(True))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                (UserProfile.first_name + " " + UserProfile.last_name).ilike(pattern),
                UserProfile.email.ilike(pattern),
            )
        )
    return query.order_by(UserProfile.last_name, UserProfile.first_name, UserProfile.id).all()


def get_user_profile(db: Session, organization_id: int, profile_id: int) -> UserProfile:
    """Raises NotFoundError for missing profiles and profiles of other organizations."""
    profile = db.query(UserProfile).filter(
        UserProfile.id == profile_id,
        UserProfile.organization_id == organization_id,
    ).first()
    if profile is None:
        raise NotFoundError("UserProfile", profile_id)
    return profile


def create_user_profile(
    db: Session,
    organization_id: int,
    data: UserProfileCreate,
    actor_id: Optional[int] = None,
) -> UserProfile:
    """Create a profile for an identity provider account.

    Raises:
        RecordValidationError: If the identity already has a profile
        NotFoundError: If mail_room_id does not exist
        TenantMismatchError: If mail_room_id belongs to another organization
    """
    existing = db.query(UserProfile).filter(UserProfile.user_id == data.user_id).first()
    if existing is not None:
        raise RecordValidationError("This identity already has a user profile", field="user_id")
    _check_mail_room(db, organization_id, data.mail_room_id)

    profile = UserProfile(organization_id=organization_id, **data.model_dump())
    db.add(profile)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.CREATE,
        user_id=actor_id,
        table_name="user_profiles",
        record_id=profile.id,
        details={"email": profile.email, "role": UserRole(profile.role).value},
    )
    logger.info("User profile created", extra={"org_id": organization_id, "user_id": profile.id})
    return profile


def update_user_profile(
    db: Session,
    profile: UserProfile,
    changes: Dict[str, Any],
    actor_id: Optional[int] = None,
) -> UserProfile:
    """Apply a partial update to a profile.

    Role changes are recorded with the old and new role in the audit entry.
    """
    for required in ("first_name", "last_name", "email", "role", "is_active"):
        if required in changes and changes[required] is None:
            raise RecordValidationError(f"{required} cannot be cleared", field=required)
    if "mail_room_id" in changes:
        _check_mail_room(db, profile.organization_id, changes["mail_room_id"])

    details: Dict[str, Any] = {"fields": sorted(changes)}
    if "role" in changes and UserRole(changes["role"]) != UserRole(profile.role):
        details["old_role"] = UserRole(profile.role).value
        details["new_role"] = UserRole(changes["role"]).value

    for field, value in changes.items():
        setattr(profile, field, value)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=profile.organization_id,
        action=AuditAction.UPDATE,
        user_id=actor_id,
        table_name="user_profiles",
        record_id=profile.id,
        details=details,
    )
    return profile
