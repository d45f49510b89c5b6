"""Dashboard endpoints (STAFF or higher).

Figures cover the context mailroom when one is resolved, otherwise the whole
organization. Pass ?mail_room_id= to look at another mailroom.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..dependencies import get_context
from ..tenancy.context import MailroomContext
from . import service
from .schemas import BusiestPeriod, DelayedItemList, MailStats, MailVolume, TypeCount


router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
    dependencies=[Depends(require_role(UserRole.STAFF))],
)


@router.get("/stats", response_model=MailStats)
def get_mail_stats(
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailStats:
    return service.get_mail_stats(db, ctx)


@router.get("/delayed", response_model=DelayedItemList)
def list_delayed_items(
    limit: int = Query(20, ge=1, le=100),
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> DelayedItemList:
    items, total = service.list_delayed_items(db, ctx, limit=limit)
    return DelayedItemList(items=items, total=total)


@router.get("/type-distribution", response_model=List[TypeCount])
def get_type_distribution(
    since: Optional[datetime] = Query(None, description="Only items received since (ISO 8601)"),
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> List[TypeCount]:
    return service.get_type_distribution(db, ctx, since=since)


@router.get("/busiest-periods", response_model=List[BusiestPeriod])
def get_busiest_periods(
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> List[BusiestPeriod]:
    return service.get_busiest_periods(db, ctx)


@router.get("/mail-volume", response_model=MailVolume)
def get_mail_volume(
    ctx: MailroomContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> MailVolume:
    """Weekly intake over the last 30 days, with week-over-week change."""
    return service.get_mail_volume(db, ctx)
