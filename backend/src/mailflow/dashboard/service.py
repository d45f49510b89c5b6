"""Dashboard statistics for an organization, or one of its mailrooms.

All figures are computed against an explicit `now` so they can be tested
deterministically. Day boundaries are UTC.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..domain.mail_items import OPEN_STATUSES, MailItemStatus
from ..models.base import ensure_utc
from ..models.mail_item import MailItem
from ..tenancy.context import MailroomContext
from ..tenancy.settings import get_organization_settings
from .schemas import (
    BusiestPeriod,
    DelayedItem,
    MailStats,
    MailVolume,
    TypeCount,
    WeekdayShare,
    WeeklyVolume,
)

PROCESSING_WINDOW_DAYS = 14
INSIGHT_WINDOW_DAYS = 30
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _scoped(db: Session, ctx: MailroomContext) -> Query:
    query = db.query(MailItem).filter(MailItem.organization_id == ctx.organization_id)
    if ctx.mail_room_id is not None:
        query = query.filter(MailItem.mail_room_id == ctx.mail_room_id)
    return query


def _open(query: Query) -> Query:
    return query.filter(MailItem.status.in_(list(OPEN_STATUSES)))


def _picked_up_between(query: Query, start: datetime, end: datetime) -> Query:
    return query.filter(
        MailItem.status == MailItemStatus.PICKED_UP,
        MailItem.picked_up_at >= start,
        MailItem.picked_up_at < end,
    )


def _average_processing_days(db: Session, ctx: MailroomContext, start: datetime, end: datetime) -> float:
    rows: List[Tuple[datetime, datetime]] = (
        _picked_up_between(_scoped(db, ctx), start, end)
        .with_entities(MailItem.received_at, MailItem.picked_up_at)
        .all()
    )
    if not rows:
        return 0.0
    total_seconds = sum(
        (ensure_utc(picked_up_at) - ensure_utc(received_at)).total_seconds()
        for received_at, picked_up_at in rows
    )
    return round(total_seconds / len(rows) / 86400, 1)


def get_mail_stats(db: Session, ctx: MailroomContext, now: Optional[datetime] = None) -> MailStats:
    """Compute the dashboard headline numbers.

    Args:
        db: Database session
        ctx: Context; restricted to ctx.mail_room when one is resolved
        now: Reference time (defaults to the current UTC time)
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    threshold_days = get_organization_settings(ctx.organization).aging_threshold_days

    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow_start = today_start + timedelta(days=1)
    yesterday_start = today_start - timedelta(days=1)

    pending_count = _open(_scoped(db, ctx)).count()
    priority_count = _open(_scoped(db, ctx)).filter(MailItem.is_priority.is_(True)).count()
    delivered_today = _picked_up_between(_scoped(db, ctx), today_start, tomorrow_start).count()
    delivered_yesterday = _picked_up_between(_scoped(db, ctx), yesterday_start, today_start).count()
    aging_count = (
        _open(_scoped(db, ctx))
        .filter(MailItem.received_at < now - timedelta(days=threshold_days))
        .count()
    )

    oldest_received = _open(_scoped(db, ctx)).with_entities(func.min(MailItem.received_at)).scalar()
    oldest_days = max((now - ensure_utc(oldest_received)).days, 0) if oldest_received else 0

    window = timedelta(days=PROCESSING_WINDOW_DAYS)
    avg_processing = _average_processing_days(db, ctx, now - window, now + timedelta(seconds=1))
    prev_avg_processing = _average_processing_days(db, ctx, now - 2 * window, now - window)

    return MailStats(
        pending_count=pending_count,
        priority_count=priority_count,
        delivered_today_count=delivered_today,
        delivered_yesterday_count=delivered_yesterday,
        delivered_diff=delivered_today - delivered_yesterday,
        aging_count=aging_count,
        aging_threshold_days=threshold_days,
        oldest_days=oldest_days,
        avg_processing_days=avg_processing,
        processing_diff=round(avg_processing - prev_avg_processing, 1),
    )


def list_delayed_items(
    db: Session,
    ctx: MailroomContext,
    now: Optional[datetime] = None,
    limit: int = 20,
) -> Tuple[List[DelayedItem], int]:
    """Open items waiting longer than the aging threshold, oldest first."""
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    threshold_days = get_organization_settings(ctx.organization).aging_threshold_days

    query = _open(_scoped(db, ctx)).filter(MailItem.received_at < now - timedelta(days=threshold_days))
    total = query.count()
    items = query.order_by(MailItem.received_at.asc(), MailItem.id.asc()).limit(limit).all()

    return [
        DelayedItem(
            id=item.id,
            tracking_number=item.tracking_number,
            recipient_name=item.recipient_name,
            mail_room_id=item.mail_room_id,
            days_waiting=(now - ensure_utc(item.received_at)).days,
            is_priority=item.is_priority,
        )
        for item in items
    ], total


def get_type_distribution(
    db: Session,
    ctx: MailroomContext,
    since: Optional[datetime] = None,
) -> List[TypeCount]:
    """Number of items per type, most common first."""
    query = _scoped(db, ctx)
    if since is not None:
        query = query.filter(MailItem.received_at >= ensure_utc(since))
    rows = (
        query.with_entities(MailItem.type, func.count(MailItem.id))
        .group_by(MailItem.type)
        .all()
    )
    counts = [TypeCount(type=item_type, count=count) for item_type, count in rows]
    return sorted(counts, key=lambda entry: (-entry.count, entry.type.value))


def get_busiest_periods(
    db: Session,
    ctx: MailroomContext,
    now: Optional[datetime] = None,
) -> List[BusiestPeriod]:
    """Busiest weekday and hour of intake over the last 30 days."""
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    received = [
        ensure_utc(received_at)
        for (received_at,) in _scoped(db, ctx)
        .filter(MailItem.received_at >= now - timedelta(days=INSIGHT_WINDOW_DAYS))
        .with_entities(MailItem.received_at)
        .all()
    ]
    if not received:
        return []

    total = len(received)
    day, day_count = Counter(ts.weekday() for ts in received).most_common(1)[0]
    hour, hour_count = Counter(ts.hour for ts in received).most_common(1)[0]

    return [
        BusiestPeriod(
            label="Day of Week",
            type="day",
            value=round(day_count / total * 100),
            period=DAY_NAMES[day],
        ),
        BusiestPeriod(
            label="Time of Day",
            type="hour",
            value=round(hour_count / total * 100),
            period=f"{hour:02d}:00-{(hour + 1) % 24:02d}:00",
        ),
    ]


def _week_start(ts: datetime) -> date:
    return (ts - timedelta(days=ts.weekday())).date()


def get_mail_volume(
    db: Session,
    ctx: MailroomContext,
    now: Optional[datetime] = None,
) -> MailVolume:
    """Weekly intake over the last 30 days with a week-over-week trend.

    Every week touching the window is reported, including weeks without
    intake. The current week is compared against the one before it; the
    change is None when the previous week had no items. Items that ended
    lost, returned or other are counted but left out of processing time.
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    window_start = now - timedelta(days=INSIGHT_WINDOW_DAYS)
    rows = (
        _scoped(db, ctx)
        .filter(MailItem.received_at >= window_start, MailItem.received_at <= now)
        .with_entities(MailItem.received_at, MailItem.picked_up_at, MailItem.status, MailItem.is_priority)
        .all()
    )

    weeks: Dict[date, Dict[str, Any]] = {}
    week = _week_start(window_start)
    while week <= now.date():
        weeks[week] = {"total": 0, "picked_up": 0, "pending": 0, "priority": 0, "hours": []}
        week += timedelta(days=7)

    weekdays: Counter = Counter()
    for received_at, picked_up_at, status, is_priority in rows:
        received_at = ensure_utc(received_at)
        status = MailItemStatus(status)
        bucket = weeks[_week_start(received_at)]
        bucket["total"] += 1
        bucket["priority"] += 1 if is_priority else 0
        weekdays[received_at.weekday()] += 1

        if status == MailItemStatus.PICKED_UP and picked_up_at is not None:
            bucket["picked_up"] += 1
            bucket["hours"].append((ensure_utc(picked_up_at) - received_at).total_seconds() / 3600)
        elif status in OPEN_STATUSES:
            bucket["pending"] += 1
            bucket["hours"].append((now - received_at).total_seconds() / 3600)

    weekly = [
        WeeklyVolume(
            week_start=week_start,
            total_items=bucket["total"],
            picked_up=bucket["picked_up"],
            pending=bucket["pending"],
            priority_items=bucket["priority"],
            avg_processing_hours=round(sum(bucket["hours"]) / len(bucket["hours"]), 2) if bucket["hours"] else 0.0,
        )
        for week_start, bucket in weeks.items()
    ]

    change = None
    if len(weekly) >= 2 and weekly[-2].total_items:
        current, previous = weekly[-1].total_items, weekly[-2].total_items
        change = round((current - previous) / previous * 100)

    total = len(rows)
    # Ties go to the earlier weekday
    ranked = sorted(weekdays.items(), key=lambda entry: (-entry[1], entry[0]))[:2]
    busiest = [WeekdayShare(day=DAY_NAMES[day], percentage=round(count / total * 100)) for day, count in ranked]

    return MailVolume(
        window_days=INSIGHT_WINDOW_DAYS,
        total_items=total,
        weeks=weekly,
        week_over_week_change=change,
        busiest_days=busiest,
    )
