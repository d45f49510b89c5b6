"""Resolution of the organization and mailroom an actor is working in.

Every service operation receives a MailroomContext explicitly instead of
reading a "current organization" from shared state. The context is resolved
once per request from the actor's profile and an optional mailroom selection.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth.roles import UserRole, is_staff
from ..domain.errors import NotFoundError
from ..models.mail_room import MailRoom
from ..models.organization import Organization
from ..models.user_profile import UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailroomContext:
    """Resolved (organization, mailroom, actor) triple for one operation."""
    organization: Organization
    mail_room: Optional[MailRoom]
    actor: UserProfile

    @property
    def organization_id(self) -> int:
        return self.organization.id

    @property
    def mail_room_id(self) -> Optional[int]:
        return self.mail_room.id if self.mail_room else None

    @property
    def actor_role(self) -> UserRole:
        return UserRole(self.actor.role)

    @property
    def actor_is_staff(self) -> bool:
        return is_staff(self.actor.role)


def _load_mail_room(db: Session, organization: Organization, mail_room_id: int) -> MailRoom:
    mail_room = db.get(MailRoom, mail_room_id)
    # Another tenant's mailroom is reported exactly like a missing one
    if mail_room is None or mail_room.organization_id != organization.id:
        raise NotFoundError("MailRoom", mail_room_id)
    if not mail_room.is_active:
        raise NotFoundError("MailRoom", mail_room_id, reason="inactive")
    return mail_room


def resolve_context(
    db: Session,
    profile: UserProfile,
    mail_room_id: Optional[int] = None,
) -> MailroomContext:
    """Resolve the organization and mailroom in scope for an actor.

    Precedence for the mailroom:
    1. explicit mail_room_id selection
    2. the profile's assigned mailroom
    3. the organization's first active mailroom by name (None if there is none)

    Args:
        db: Database session
        profile: Authenticated actor's user profile
        mail_room_id: Optional explicit mailroom selection

    Returns:
        MailroomContext with the organization, mailroom (or None) and actor

    Raises:
        NotFoundError: If the organization is missing, or the selected or
            assigned mailroom is missing, inactive or owned by another tenant
    """
    organization = db.get(Organization, profile.organization_id)
    if organization is None:
        raise NotFoundError("Organization", profile.organization_id)

    selected_id = mail_room_id if mail_room_id is not None else profile.mail_room_id
    if selected_id is not None:
        mail_room = _load_mail_room(db, organization, selected_id)
    else:
        mail_room = db.execute(
            select(MailRoom)
            .where(
                MailRoom.organization_id == organization.id,
                MailRoom.is_active.is_(True),
            )
            .order_by(MailRoom.name, MailRoom.id)
            .limit(1)
        ).scalar_one_or_none()

    logger.debug(
        "Resolved context",
        extra={"org_id": organization.id, "user_id": profile.id, "mail_room_id": mail_room.id if mail_room else None},
    )
    return MailroomContext(organization=organization, mail_room=mail_room, actor=profile)
