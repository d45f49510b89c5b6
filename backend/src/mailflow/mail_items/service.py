"""Mail item service - intake, editing, queries and lifecycle transitions.

Every operation receives the resolved MailroomContext explicitly; there is
no ambient "current organization". Functions flush but never commit, so the
caller (router, script or test) owns the transaction.

Visibility:
- staff and above see every mail item of their organization
- recipients see only items addressed to their own profile
- items of another organization are reported as not found
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, aliased, selectinload

from ..audit.service import log_audit_event
from ..config import get_settings
from ..domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
    TenantMismatchError,
)
from ..domain.mail_items import (
    OPEN_STATUSES,
    MailItemStatus,
    is_terminal,
    validate_transition,
)
from ..models.audit_log import AuditAction
from ..models.base import ensure_utc
from ..models.external_person import ExternalPerson
from ..models.mail_item import MailItem
from ..models.mail_room import MailRoom
from ..models.notification import Notification, NotificationStatus, NotificationType
from ..models.pickup import Pickup
from ..models.user_profile import UserProfile
from ..observability.metrics import (
    mail_item_transitions_total,
    mail_items_received_total,
    notifications_created_total,
)
from ..tenancy.context import MailroomContext
from ..tenancy.settings import get_organization_settings
from .schemas import MailItemCreate, MailItemUpdate, PickupRequest

logger = logging.getLogger(__name__)


def _value(enum_or_str) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


def _load_owned(db: Session, ctx: MailroomContext, model, record_id: int, field: str):
    """Load a record referenced by a write and check it shares the context organization.

    Raises:
        NotFoundError: If the record does not exist
        TenantMismatchError: If the record belongs to another organization
    """
    record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(model.__name__, record_id)
    if record.organization_id != ctx.organization_id:
        raise TenantMismatchError(
            f"{field} references a {model.__name__} of another organization",
            field=field,
        )
    return record


def _check_recipients(
    db: Session,
    ctx: MailroomContext,
    recipient_id: Optional[int],
    external_recipient_id: Optional[int],
) -> None:
    if recipient_id is not None and external_recipient_id is not None:
        raise RecordValidationError(
            "A mail item has either a recipient or an external recipient, not both",
            field="recipient_id",
        )
    if recipient_id is not None:
        _load_owned(db, ctx, UserProfile, recipient_id, "recipient_id")
    if external_recipient_id is not None:
        _load_owned(db, ctx, ExternalPerson, external_recipient_id, "external_recipient_id")


def _visible_items(db: Session, ctx: MailroomContext) -> Query:
    query = db.query(MailItem).filter(MailItem.organization_id == ctx.organization_id)
    if not ctx.actor_is_staff:
        query = query.filter(MailItem.recipient_id == ctx.actor.id)
    return query


def _get_scoped_item(db: Session, ctx: MailroomContext, item_id: int, with_history: bool = False) -> MailItem:
    query = _visible_items(db, ctx).filter(MailItem.id == item_id)
    if with_history:
        query = query.options(selectinload(MailItem.pickups), selectinload(MailItem.notifications))
    item = query.first()
    if item is None:
        raise NotFoundError("MailItem", item_id)
    return item


def _apply_search(query: Query, search: Optional[str]) -> Query:
    """Match tracking number, description, or recipient name and email."""
    if not search or not search.strip():
        return query

    pattern = f"%{search.strip()}%"
    recipient = aliased(UserProfile)
    external = aliased(ExternalPerson)
    return (
        query.outerjoin(recipient, MailItem.recipient_id == recipient.id)
        .outerjoin(external, MailItem.external_recipient_id == external.id)
        .filter(
            or_(
                MailItem.tracking_number.ilike(pattern),
                MailItem.description.ilike(pattern),
                (recipient.first_name + " " + recipient.last_name).ilike(pattern),
                recipient.email.ilike(pattern),
                (external.first_name + " " + external.last_name).ilike(pattern),
                external.email.ilike(pattern),
            )
        )
    )


def _paginate(query: Query, page: int, per_page: Optional[int]) -> Tuple[List[MailItem], int]:
    settings = get_settings()
    per_page = min(per_page or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    page = max(page, 1)
    total = query.count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return items, total


# ============================================================================
# Intake and editing
# ============================================================================

def receive_mail_item(
    db: Session,
    ctx: MailroomContext,
    data: MailItemCreate,
    processed_by: Optional[UserProfile] = None,
    now: Optional[datetime] = None,
) -> MailItem:
    """Log a newly arrived mail item as pending.

    The item is placed in data.mail_room_id when given, otherwise in the
    context mailroom. The carrier defaults to the organization's
    default_carrier setting.

    Args:
        db: Database session
        ctx: Resolved organization/mailroom context
        data: Intake payload
        processed_by: Staff member logging the item
        now: Intake time (defaults to the current UTC time)

    Returns:
        MailItem: The new pending item (flushed, not committed)

    Raises:
        RecordValidationError: Missing type, no mailroom, or two recipients
        NotFoundError: Mailroom or recipient does not exist, or mailroom is inactive
        TenantMismatchError: Mailroom or recipient belongs to another organization
    """
    if data.type is None:
        raise RecordValidationError("Mail item type is required", field="type")

    mail_room_id = data.mail_room_id if data.mail_room_id is not None else ctx.mail_room_id
    if mail_room_id is None:
        raise RecordValidationError(
            "No mailroom selected and the organization has no active mailroom",
            field="mail_room_id",
        )
    mail_room = _load_owned(db, ctx, MailRoom, mail_room_id, "mail_room_id")
    if not mail_room.is_active:
        raise NotFoundError("MailRoom", mail_room_id, reason="inactive")

    _check_recipients(db, ctx, data.recipient_id, data.external_recipient_id)

    org_settings = get_organization_settings(ctx.organization)
    received_at = ensure_utc(data.received_at) if data.received_at else (now or datetime.now(timezone.utc))

    item = MailItem(
        organization_id=ctx.organization_id,
        mail_room_id=mail_room.id,
        recipient_id=data.recipient_id,
        external_recipient_id=data.external_recipient_id,
        tracking_number=data.tracking_number,
        carrier=data.carrier or org_settings.default_carrier,
        type=data.type,
        description=data.description,
        notes=data.notes,
        is_priority=data.is_priority,
        label_image=data.label_image,
        status=MailItemStatus.PENDING,
        received_at=received_at,
        processed_by_id=processed_by.id if processed_by else None,
    )
    db.add(item)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=ctx.organization_id,
        action=AuditAction.CREATE,
        user_id=ctx.actor.id,
        table_name="mail_items",
        record_id=item.id,
        details={
            "tracking_number": item.tracking_number,
            "carrier": _value(item.carrier),
            "type": _value(item.type),
            "mail_room_id": item.mail_room_id,
        },
    )

    mail_items_received_total.labels(carrier=_value(item.carrier), type=_value(item.type)).inc()
    logger.info(
        "Mail item received",
        extra={"org_id": ctx.organization_id, "mail_room_id": item.mail_room_id, "mail_item_id": item.id},
    )
    return item


def update_mail_item(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    data: MailItemUpdate,
) -> MailItem:
    """Edit descriptive fields and the recipient of an open mail item.

    Only fields present in the payload change. Switching between a user and
    an external recipient requires clearing the other field explicitly.

    Raises:
        NotFoundError: Item missing or not visible in this context
        InvalidTransitionError: Item is in a terminal status
        RecordValidationError: Invalid combination of fields
        TenantMismatchError: New recipient belongs to another organization
    """
    item = _get_scoped_item(db, ctx, item_id)
    if is_terminal(item.status):
        raise InvalidTransitionError(
            f"Mail item is {_value(item.status)}; terminal items cannot be edited",
            current_status=item.status,
        )

    changes = data.model_dump(exclude_unset=True)
    for required in ("type", "carrier", "is_priority"):
        if required in changes and changes[required] is None:
            raise RecordValidationError(f"{required} cannot be cleared", field=required)

    if "recipient_id" in changes or "external_recipient_id" in changes:
        recipient_id = changes.get("recipient_id", item.recipient_id)
        external_recipient_id = changes.get("external_recipient_id", item.external_recipient_id)
        _check_recipients(db, ctx, recipient_id, external_recipient_id)
        if (
            MailItemStatus(item.status) == MailItemStatus.NOTIFIED
            and recipient_id is None
            and external_recipient_id is None
        ):
            raise RecordValidationError("A notified mail item must keep its recipient", field="recipient_id")

    for field, value in changes.items():
        setattr(item, field, value)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=ctx.organization_id,
        action=AuditAction.UPDATE,
        user_id=ctx.actor.id,
        table_name="mail_items",
        record_id=item.id,
        details={"fields": sorted(changes)},
    )
    return item


# ============================================================================
# Queries
# ============================================================================

def get_mail_item(db: Session, ctx: MailroomContext, item_id: int) -> MailItem:
    """Fetch one mail item with its pickups and notifications.

    Raises:
        NotFoundError: Item missing, in another organization, or not addressed
            to a recipient-role actor
    """
    return _get_scoped_item(db, ctx, item_id, with_history=True)


def list_pending_mail_items(
    db: Session,
    ctx: MailroomContext,
    search: Optional[str] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> Tuple[List[MailItem], int]:
    """Items still waiting for pickup (pending or notified).

    Staff see the context mailroom's queue; recipients see their own open
    items in every mailroom. Priority items come first, then newest first.

    Returns:
        Tuple of (items on the requested page, total count)
    """
    query = _visible_items(db, ctx).filter(MailItem.status.in_(list(OPEN_STATUSES)))
    if ctx.actor_is_staff and ctx.mail_room_id is not None:
        query = query.filter(MailItem.mail_room_id == ctx.mail_room_id)
    query = _apply_search(query, search)
    query = query.order_by(MailItem.is_priority.desc(), MailItem.received_at.desc(), MailItem.id.desc())
    return _paginate(query, page, per_page)


def list_mail_history(
    db: Session,
    ctx: MailroomContext,
    status: Optional[MailItemStatus] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    mail_room_id: Optional[int] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> Tuple[List[MailItem], int]:
    """All mail items of the organization, newest received first.

    Args:
        status: Only items in this status
        search: Tracking number, description or recipient name/email
        start_date: Minimum received_at (inclusive)
        end_date: Maximum received_at (inclusive)
        mail_room_id: Only items of this mailroom

    Returns:
        Tuple of (items on the requested page, total count)
    """
    query = _visible_items(db, ctx)
    if status is not None:
        query = query.filter(MailItem.status == MailItemStatus(status))
    if mail_room_id is not None:
        query = query.filter(MailItem.mail_room_id == mail_room_id)
    if start_date is not None:
        query = query.filter(MailItem.received_at >= ensure_utc(start_date))
    if end_date is not None:
        query = query.filter(MailItem.received_at <= ensure_utc(end_date))
    query = _apply_search(query, search)
    query = query.order_by(MailItem.received_at.desc(), MailItem.id.desc())
    return _paginate(query, page, per_page)


# ============================================================================
# Lifecycle transitions
# ============================================================================

def _notification_destination(channel: NotificationType, person) -> Optional[str]:
    if channel == NotificationType.EMAIL:
        return person.email
    if channel == NotificationType.SMS:
        return person.phone
    return person.email or person.phone


def _queue_notification(db: Session, ctx: MailroomContext, item: MailItem) -> Notification:
    """Create the pending notification row for a pending -> notified transition."""
    person = item.recipient or item.external_recipient
    if person is None:
        raise RecordValidationError("Cannot notify: mail item has no recipient", field="recipient_id")

    org_settings = get_organization_settings(ctx.organization)
    channel = org_settings.notifications.default_channel
    destination = _notification_destination(channel, person)
    if not destination:
        raise RecordValidationError(
            f"Recipient {person.full_name} has no {channel.value} destination",
            field="recipient_id",
        )

    mail_room_name = item.mail_room.name if item.mail_room else "the mailroom"
    message = (
        f"Hello {person.first_name}, a {_value(item.type).replace('_', ' ')} is waiting "
        f"for you at {mail_room_name}."
    )
    if item.tracking_number:
        message += f" Tracking number: {item.tracking_number}."

    notification = Notification(
        organization_id=ctx.organization_id,
        mail_item_id=item.id,
        recipient_id=item.recipient_id,
        external_recipient_id=item.external_recipient_id,
        type=channel,
        destination=destination,
        message=message,
        status=NotificationStatus.PENDING,
        metadata_json={"subject": org_settings.notifications.email_subject}
        if channel == NotificationType.EMAIL else None,
    )
    db.add(notification)
    return notification


def _record_pickup(
    db: Session,
    ctx: MailroomContext,
    item: MailItem,
    now: datetime,
    processed_by_id: Optional[int],
    pickup: Optional[PickupRequest],
) -> Pickup:
    if processed_by_id is None:
        raise RecordValidationError("processed_by_id is required to record a pickup", field="processed_by_id")
    processed_by = _load_owned(db, ctx, UserProfile, processed_by_id, "processed_by_id")
    if item.recipient_id is None and item.external_recipient_id is None:
        raise RecordValidationError("Cannot record a pickup without a recipient", field="recipient_id")

    record = Pickup(
        mail_item_id=item.id,
        recipient_id=item.recipient_id,
        external_recipient_id=item.external_recipient_id,
        processed_by_id=processed_by.id,
        picked_up_at=now,
        signature=pickup.signature if pickup else None,
        photo_confirmation=pickup.photo_confirmation if pickup else None,
        notes=pickup.notes if pickup else None,
    )
    db.add(record)

    item.picked_up_at = now
    item.processed_by_id = processed_by.id
    return record


def transition_mail_item(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    target_status: MailItemStatus | str,
    now: Optional[datetime] = None,
    processed_by_id: Optional[int] = None,
    pickup: Optional[PickupRequest] = None,
    reason: Optional[str] = None,
) -> MailItem:
    """Move a mail item to target_status and apply the transition's side effects.

    Side effects:
    - pending -> notified: notified_at = now, notification row queued
    - notified -> picked_up: picked_up_at = now, processed_by_id set, pickup row written
    - pending|notified -> returned_to_sender|lost|other: only updated_at changes

    Args:
        db: Database session
        ctx: Resolved organization/mailroom context
        item_id: Mail item to transition
        target_status: Desired status
        now: Transition time (defaults to the current UTC time)
        processed_by_id: Staff member handing the item over (picked_up only)
        pickup: Signature, photo and notes recorded with a pickup
        reason: Free text stored in the audit entry

    Returns:
        MailItem: The updated item (flushed, not committed)

    Raises:
        NotFoundError: Item missing or not visible in this context
        InvalidTransitionError: Transition not allowed from the current status
        RecordValidationError: Missing recipient, destination or processed_by_id
        TenantMismatchError: processed_by_id belongs to another organization
    """
    target = MailItemStatus(target_status)
    item = _get_scoped_item(db, ctx, item_id)
    current = MailItemStatus(item.status)
    validate_transition(current, target)

    now = now or datetime.now(timezone.utc)
    notification = None

    if target == MailItemStatus.NOTIFIED:
        notification = _queue_notification(db, ctx, item)
        item.notified_at = now
    elif target == MailItemStatus.PICKED_UP:
        _record_pickup(db, ctx, item, now, processed_by_id, pickup)

    item.status = target
    item.updated_at = now
    db.flush()

    details = {"from": current.value, "to": target.value}
    if reason:
        details["reason"] = reason
    log_audit_event(
        db=db,
        organization_id=ctx.organization_id,
        action=AuditAction.UPDATE,
        user_id=ctx.actor.id,
        table_name="mail_items",
        record_id=item.id,
        details=details,
    )

    mail_item_transitions_total.labels(from_status=current.value, to_status=target.value).inc()
    if notification is not None:
        notifications_created_total.labels(type=_value(notification.type)).inc()
    logger.info(
        "Mail item status changed",
        extra={
            "org_id": ctx.organization_id,
            "mail_item_id": item.id,
            "from_status": current.value,
            "to_status": target.value,
        },
    )
    return item


def notify_mail_item(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    now: Optional[datetime] = None,
) -> MailItem:
    """pending -> notified. Requires a recipient with a destination for the configured channel."""
    return transition_mail_item(db, ctx, item_id, MailItemStatus.NOTIFIED, now=now)


def pick_up_mail_item(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    pickup: Optional[PickupRequest] = None,
    now: Optional[datetime] = None,
) -> MailItem:
    """notified -> picked_up, handed over by pickup.processed_by_id or the acting profile."""
    processed_by_id = pickup.processed_by_id if pickup and pickup.processed_by_id else ctx.actor.id
    return transition_mail_item(
        db, ctx, item_id, MailItemStatus.PICKED_UP,
        now=now, processed_by_id=processed_by_id, pickup=pickup,
    )


def return_mail_item(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MailItem:
    return transition_mail_item(db, ctx, item_id, MailItemStatus.RETURNED_TO_SENDER, now=now, reason=reason)


def mark_mail_item_lost(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MailItem:
    return transition_mail_item(db, ctx, item_id, MailItemStatus.LOST, now=now, reason=reason)


def mark_mail_item_other(
    db: Session,
    ctx: MailroomContext,
    item_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MailItem:
    return transition_mail_item(db, ctx, item_id, MailItemStatus.OTHER, now=now, reason=reason)
