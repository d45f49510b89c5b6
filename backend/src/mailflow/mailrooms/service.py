"""Mailroom management.

Mailrooms are never deleted; deactivation hides them from context
resolution and intake while their mail items stay queryable.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..domain.errors import NotFoundError, RecordValidationError
from ..models.audit_log import AuditAction
from ..models.mail_room import MailRoom
from .schemas import MailRoomCreate, MailRoomUpdate

logger = logging.getLogger(__name__)


def list_mail_rooms(db: Session, organization_id: int, active_only: bool = False) -> List[MailRoom]:
    query = db.query(MailRoom).filter(MailRoom.organization_id == organization_id)
    if active_only:
        query = query.filter(MailRoom.is_active.is_(True))
    return query.order_by(MailRoom.name).all()


def get_mail_room(db: Session, organization_id: int, mail_room_id: int) -> MailRoom:
    mail_room = db.query(MailRoom).filter(
        MailRoom.id == mail_room_id,
        MailRoom.organization_id == organization_id,
    ).first()
    if mail_room is None:
        raise NotFoundError("MailRoom", mail_room_id)
    return mail_room


def _ensure_unique_name(db: Session, organization_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(MailRoom).filter(
        MailRoom.organization_id == organization_id,
        MailRoom.name == name.strip(),
    )
    if exclude_id is not None:
        query = query.filter(MailRoom.id != exclude_id)
    if query.first() is not None:
        raise RecordValidationError(f"A mailroom named '{name.strip()}' already exists", field="name")


def create_mail_room(db: Session, organization_id: int, data: MailRoomCreate, actor_id: Optional[int] = None) -> MailRoom:
    """Create an active mailroom.

    Raises:
        RecordValidationError: If the organization already has a mailroom with that name
    """
    _ensure_unique_name(db, organization_id, data.name)

    mail_room = MailRoom(organization_id=organization_id, name=data.name, location=data.location)
    db.add(mail_room)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.CREATE,
        user_id=actor_id,
        table_name="mail_rooms",
        record_id=mail_room.id,
        details={"name": mail_room.name},
    )
    logger.info("Mailroom created", extra={"org_id": organization_id, "mail_room_id": mail_room.id})
    return mail_room


def update_mail_room(
    db: Session,
    organization_id: int,
    mail_room_id: int,
    data: MailRoomUpdate,
    actor_id: Optional[int] = None,
) -> MailRoom:
    """Apply a partial update; is_active=false deactivates the mailroom."""
    mail_room = get_mail_room(db, organization_id, mail_room_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        _ensure_unique_name(db, organization_id, changes["name"], exclude_id=mail_room.id)
    elif "name" in changes:
        raise RecordValidationError("name cannot be cleared", field="name")
    if "is_active" in changes and changes["is_active"] is None:
        raise RecordValidationError("is_active cannot be cleared", field="is_active")

    for field, value in changes.items():
        setattr(mail_room, field, value)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.UPDATE,
        user_id=actor_id,
        table_name="mail_rooms",
        record_id=mail_room.id,
        details={"fields": sorted(changes)},
    )
    return mail_room


def deactivate_mail_room(db: Session, organization_id: int, mail_room_id: int, actor_id: Optional[int] = None) -> MailRoom:
    return update_mail_room(db, organization_id, mail_room_id, MailRoomUpdate(is_active=False), actor_id=actor_id)
