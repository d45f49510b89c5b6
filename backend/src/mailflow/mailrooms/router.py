"""Mailroom endpoints.

Every authenticated profile can list the mailrooms of its organization;
creating, updating and deactivating mailrooms requires MANAGER or higher.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user, require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.mail_room import MailRoom
from ..models.user_profile import UserProfile
from . import service
from .schemas import MailRoomCreate, MailRoomListResponse, MailRoomResponse, MailRoomUpdate


router = APIRouter(prefix="/mail-rooms", tags=["Mailrooms"])


@router.get("", response_model=MailRoomListResponse, summary="List mailrooms")
def list_mail_rooms(
    active_only: bool = Query(False, description="Only active mailrooms"),
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> MailRoomListResponse:
    mail_rooms = service.list_mail_rooms(db, current_user.organization_id, active_only=active_only)
    return MailRoomListResponse(mail_rooms=mail_rooms, total=len(mail_rooms))


@router.post(
    "",
    response_model=MailRoomResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a mailroom (MANAGER+)",
)
def create_mail_room(
    data: MailRoomCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.MANAGER)),
) -> MailRoom:
    mail_room = service.create_mail_room(db, current_user.organization_id, data, actor_id=current_user.id)
    db.commit()
    db.refresh(mail_room)
    return mail_room


@router.get("/{mail_room_id}", response_model=MailRoomResponse, summary="Get a mailroom")
def get_mail_room(
    mail_room_id: int,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> MailRoom:
    return service.get_mail_room(db, current_user.organization_id, mail_room_id)


@router.patch("/{mail_room_id}", response_model=MailRoomResponse, summary="Update a mailroom (MANAGER+)")
def update_mail_room(
    mail_room_id: int,
    data: MailRoomUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.MANAGER)),
) -> MailRoom:
    mail_room = service.update_mail_room(db, current_user.organization_id, mail_room_id, data, actor_id=current_user.id)
    db.commit()
    db.refresh(mail_room)
    return mail_room


@router.post(
    "/{mail_room_id}/deactivate",
    response_model=MailRoomResponse,
    summary="Deactivate a mailroom (MANAGER+)",
)
def deactivate_mail_room(
    mail_room_id: int,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.MANAGER)),
) -> MailRoom:
    mail_room = service.deactivate_mail_room(db, current_user.organization_id, mail_room_id, actor_id=current_user.id)
    db.commit()
    db.refresh(mail_room)
    return mail_room
