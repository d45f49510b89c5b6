"""Mail Items API Router - intake, queues, history and lifecycle actions.

Staff endpoints (intake, edit, status actions) require the staff role or
higher. Read endpoints are open to every authenticated profile; recipients
only ever see items addressed to them.

Status actions:
- POST /mail-items/{id}/notify            pending -> notified
- POST /mail-items/{id}/pickup            notified -> picked_up
- POST /mail-items/{id}/return-to-sender  pending|notified -> returned_to_sender
- POST /mail-items/{id}/mark-lost         pending|notified -> lost
- POST /mail-items/{id}/mark-other        pending|notified -> other
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..dependencies import get_context
from ..domain.mail_items import MailItemStatus, get_allowed_transitions
from ..models.mail_item import MailItem
from ..tenancy.context import MailroomContext
from . import service
from .schemas import (
    MailItemCreate,
    MailItemDetailResponse,
    MailItemListResponse,
    MailItemResponse,
    MailItemUpdate,
    PickupRequest,
    StatusChangeRequest,
)


router = APIRouter(prefix="/mail-items", tags=["Mail Items"])

require_staff = require_role(UserRole.STAFF)


def _list_response(items: List[MailItem], total: int, page: int, per_page: int) -> MailItemListResponse:
    return MailItemListResponse(
        items=[MailItemResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


def _detail_response(item: MailItem) -> MailItemDetailResponse:
    response = MailItemDetailResponse.model_validate(item)
    response.allowed_transitions = get_allowed_transitions(item.status)
    return response


@router.post(
    "",
    response_model=MailItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
    summary="Log an incoming mail item",
)
def receive_mail_item(
    data: MailItemCreate,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItem:
    """Create a pending mail item in the selected (or given) mailroom."""
    item = service.receive_mail_item(db, ctx, data, processed_by=ctx.actor)
    db.commit()
    db.refresh(item)
    return item


@router.get("", response_model=MailItemListResponse, summary="Mail history")
def list_mail_history(
    status_filter: Optional[MailItemStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Tracking number, description or recipient"),
    start_date: Optional[datetime] = Query(None, description="Minimum received_at (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum received_at (ISO 8601)"),
    room: Optional[int] = Query(None, description="Only items of this mailroom"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(10, ge=1, le=100, description="Results per page"),
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemListResponse:
    items, total = service.list_mail_history(
        db,
        ctx,
        status=status_filter,
        search=search,
        start_date=start_date,
        end_date=end_date,
        mail_room_id=room,
        page=page,
        per_page=per_page,
    )
    return _list_response(items, total, page, per_page)


@router.get("/pending", response_model=MailItemListResponse, summary="Items waiting for pickup")
def list_pending_mail_items(
    search: Optional[str] = Query(None, description="Tracking number, description or recipient"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemListResponse:
    """Pending and notified items, priority first, newest first."""
    items, total = service.list_pending_mail_items(db, ctx, search=search, page=page, per_page=per_page)
    return _list_response(items, total, page, per_page)


@router.get("/{item_id}", response_model=MailItemDetailResponse, summary="Mail item detail")
def get_mail_item(
    item_id: int,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    return _detail_response(service.get_mail_item(db, ctx, item_id))


@router.patch(
    "/{item_id}",
    response_model=MailItemResponse,
    dependencies=[Depends(require_staff)],
    summary="Edit an open mail item",
)
def update_mail_item(
    item_id: int,
    data: MailItemUpdate,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItem:
    item = service.update_mail_item(db, ctx, item_id, data)
    db.commit()
    db.refresh(item)
    return item


@router.post(
    "/{item_id}/notify",
    response_model=MailItemDetailResponse,
    dependencies=[Depends(require_staff)],
    summary="Notify the recipient",
)
def notify_mail_item(
    item_id: int,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    item = service.notify_mail_item(db, ctx, item_id)
    db.commit()
    db.refresh(item)
    return _detail_response(item)


@router.post(
    "/{item_id}/pickup",
    response_model=MailItemDetailResponse,
    dependencies=[Depends(require_staff)],
    summary="Record the hand-over to the recipient",
)
def pick_up_mail_item(
    item_id: int,
    pickup: Optional[PickupRequest] = None,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    item = service.pick_up_mail_item(db, ctx, item_id, pickup=pickup)
    db.commit()
    db.refresh(item)
    return _detail_response(item)


@router.post(
    "/{item_id}/return-to-sender",
    response_model=MailItemDetailResponse,
    dependencies=[Depends(require_staff)],
    summary="Return to sender",
)
def return_mail_item(
    item_id: int,
    body: Optional[StatusChangeRequest] = None,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    item = service.return_mail_item(db, ctx, item_id, reason=body.reason if body else None)
    db.commit()
    db.refresh(item)
    return _detail_response(item)


@router.post(
    "/{item_id}/mark-lost",
    response_model=MailItemDetailResponse,
    dependencies=[Depends(require_staff)],
    summary="Mark as lost",
)
def mark_mail_item_lost(
    item_id: int,
    body: Optional[StatusChangeRequest] = None,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    item = service.mark_mail_item_lost(db, ctx, item_id, reason=body.reason if body else None)
    db.commit()
    db.refresh(item)
    return _detail_response(item)


@router.post(
    "/{item_id}/mark-other",
    response_model=MailItemDetailResponse,
    dependencies=[Depends(require_staff)],
    summary="Close with another outcome",
)
def mark_mail_item_other(
    item_id: int,
    body: Optional[StatusChangeRequest] = None,
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailItemDetailResponse:
    item = service.mark_mail_item_other(db, ctx, item_id, reason=body.reason if body else None)
    db.commit()
    db.refresh(item)
    return _detail_response(item)
