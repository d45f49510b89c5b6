"""Unit tests for dashboard statistics

All figures are computed against a fixed reference time.

NOW is Tuesday 2026-03-10 14:30 UTC. Items in the staff mailroom:
    A  package   pending     received -7d, priority     (aging)
    B  letter    notified    received -1d
    C  package   picked_up   received -2d, picked up -2h  (today)
    D  package   picked_up   received -4d, picked up -1d  (yesterday)
    E  envelope  picked_up   received -24d, picked up -20d (previous window)
    F  letter    lost        received now
Plus one pending item received -10d in a second mailroom.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from mailflow.dashboard.service import (
    get_busiest_periods,
    get_mail_stats,
    get_mail_volume,
    get_type_distribution,
    list_delayed_items,
)
from mailflow.domain.mail_items import MailItemStatus, MailItemType
from mailflow.models import MailItem, MailRoom
from mailflow.tenancy.context import MailroomContext


NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def stocked_mail_room(db_session, organization, mail_room, staff_profile):
    def add(item_type, status, received_days, notified=None, picked_up=None, room=mail_room, **fields):
        item = MailItem(
            organization_id=organization.id,
            mail_room_id=room.id,
            type=item_type,
            status=status,
            received_at=NOW - timedelta(days=received_days),
            notified_at=notified,
            picked_up_at=picked_up,
            processed_by_id=staff_profile.id if picked_up else None,
            **fields,
        )
        db_session.add(item)
        return item

    annex = MailRoom(organization_id=organization.id, name="Annex")
    db_session.add(annex)
    db_session.flush()

    items = {
        "A": add(MailItemType.PACKAGE, MailItemStatus.PENDING, 7, is_priority=True, tracking_number="AGED-1"),
        "B": add(MailItemType.LETTER, MailItemStatus.NOTIFIED, 1, notified=NOW - timedelta(hours=12)),
        "C": add(
            MailItemType.PACKAGE, MailItemStatus.PICKED_UP, 2,
            notified=NOW - timedelta(days=1), picked_up=NOW - timedelta(hours=2),
        ),
        "D": add(
            MailItemType.PACKAGE, MailItemStatus.PICKED_UP, 4,
            notified=NOW - timedelta(days=3), picked_up=NOW - timedelta(days=1),
        ),
        "E": add(
            MailItemType.ENVELOPE, MailItemStatus.PICKED_UP, 24,
            notified=NOW - timedelta(days=23), picked_up=NOW - timedelta(days=20),
        ),
        "F": add(MailItemType.LETTER, MailItemStatus.LOST, 0),
        "annex": add(MailItemType.PACKAGE, MailItemStatus.PENDING, 10, room=annex),
    }
    db_session.commit()
    return items


class TestMailStats:
    """Headline numbers"""

    def test_counts_for_context_mail_room(self, db_session, staff_ctx, stocked_mail_room):
        stats = get_mail_stats(db_session, staff_ctx, now=NOW)

        assert stats.pending_count == 2
        assert stats.priority_count == 1
        assert stats.delivered_today_count == 1
        assert stats.delivered_yesterday_count == 1
        assert stats.delivered_diff == 0
        assert stats.aging_count == 1
        assert stats.aging_threshold_days == 5
        assert stats.oldest_days == 7

    def test_processing_time_windows(self, db_session, staff_ctx, stocked_mail_room):
        """C took 1.92 days and D 3 days; E (4 days) is in the previous window"""
        stats = get_mail_stats(db_session, staff_ctx, now=NOW)

        assert stats.avg_processing_days == 2.5
        assert stats.processing_diff == -1.5

    def test_organization_wide_without_mail_room(self, db_session, organization, staff_profile, stocked_mail_room):
        ctx = MailroomContext(organization=organization, mail_room=None, actor=staff_profile)

        stats = get_mail_stats(db_session, ctx, now=NOW)

        assert stats.pending_count == 3
        assert stats.aging_count == 2
        assert stats.oldest_days == 10

    def test_aging_threshold_follows_settings(self, db_session, organization, staff_ctx, stocked_mail_room):
        organization.settings = {"aging_threshold_days": 10}
        db_session.commit()

        stats = get_mail_stats(db_session, staff_ctx, now=NOW)

        assert stats.aging_threshold_days == 10
        assert stats.aging_count == 0

    def test_empty_mail_room(self, db_session, staff_ctx):
        stats = get_mail_stats(db_session, staff_ctx, now=NOW)

        assert stats.pending_count == 0
        assert stats.oldest_days == 0
        assert stats.avg_processing_days == 0.0
        assert stats.processing_diff == 0.0


class TestDelayedItems:
    """Open items older than the aging threshold"""

    def test_lists_aged_items(self, db_session, staff_ctx, stocked_mail_room):
        items, total = list_delayed_items(db_session, staff_ctx, now=NOW)

        assert total == 1
        assert items[0].id == stocked_mail_room["A"].id
        assert items[0].tracking_number == "AGED-1"
        assert items[0].days_waiting == 7
        assert items[0].is_priority is True


class TestInsights:
    """Type distribution and busiest periods"""

    def test_type_distribution(self, db_session, staff_ctx, stocked_mail_room):
        counts = get_type_distribution(db_session, staff_ctx)

        assert [(entry.type, entry.count) for entry in counts] == [
            (MailItemType.PACKAGE, 3),
            (MailItemType.LETTER, 2),
            (MailItemType.ENVELOPE, 1),
        ]

    def test_type_distribution_since(self, db_session, staff_ctx, stocked_mail_room):
        counts = get_type_distribution(db_session, staff_ctx, since=NOW - timedelta(days=3))

        assert {entry.type: entry.count for entry in counts} == {
            MailItemType.PACKAGE: 1,
            MailItemType.LETTER: 2,
        }

    def test_busiest_periods(self, db_session, staff_ctx, stocked_mail_room):
        """A and F arrived on a Tuesday; every item arrived at 14:30"""
        day, hour = get_busiest_periods(db_session, staff_ctx, now=NOW)

        assert day.type == "day"
        assert day.period == "Tuesday"
        assert day.value == 33
        assert hour.type == "hour"
        assert hour.period == "14:00-15:00"
        assert hour.value == 100

    def test_busiest_periods_without_items(self, db_session, staff_ctx):
        assert get_busiest_periods(db_session, staff_ctx, now=NOW) == []


class TestMailVolume:
    """Weekly intake; weeks start on Monday"""

    def test_weekly_buckets(self, db_session, staff_ctx, stocked_mail_room):
        volume = get_mail_volume(db_session, staff_ctx, now=NOW)

        assert volume.window_days == 30
        assert volume.total_items == 6
        assert [week.week_start for week in volume.weeks] == [
            date(2026, 2, 2), date(2026, 2, 9), date(2026, 2, 16),
            date(2026, 2, 23), date(2026, 3, 2), date(2026, 3, 9),
        ]
        assert [week.total_items for week in volume.weeks] == [0, 1, 0, 0, 3, 2]

    def test_week_breakdown(self, db_session, staff_ctx, stocked_mail_room):
        """A is open for 168h, C took 46h, D 72h; the lost item F is not timed"""
        volume = get_mail_volume(db_session, staff_ctx, now=NOW)
        by_week = {week.week_start: week for week in volume.weeks}

        previous = by_week[date(2026, 3, 2)]
        assert (previous.picked_up, previous.pending, previous.priority_items) == (2, 1, 1)
        assert previous.avg_processing_hours == 95.33

        current = by_week[date(2026, 3, 9)]
        assert (current.picked_up, current.pending, current.priority_items) == (0, 1, 0)
        assert current.avg_processing_hours == 24.0

        assert by_week[date(2026, 2, 16)].avg_processing_hours == 0.0

    def test_trend_and_busiest_days(self, db_session, staff_ctx, stocked_mail_room):
        """Two items this week against three last week; A and F arrived on a Tuesday"""
        volume = get_mail_volume(db_session, staff_ctx, now=NOW)

        assert volume.week_over_week_change == -33
        assert [(share.day, share.percentage) for share in volume.busiest_days] == [
            ("Tuesday", 33),
            ("Monday", 17),
        ]

    def test_organization_wide(self, db_session, organization, staff_profile, stocked_mail_room):
        ctx = MailroomContext(organization=organization, mail_room=None, actor=staff_profile)

        volume = get_mail_volume(db_session, ctx, now=NOW)

        assert volume.total_items == 7
        assert [week.total_items for week in volume.weeks] == [0, 1, 0, 1, 3, 2]

    def test_no_change_without_previous_intake(self, db_session, staff_ctx):
        volume = get_mail_volume(db_session, staff_ctx, now=NOW)

        assert volume.total_items == 0
        assert len(volume.weeks) == 6
        assert volume.week_over_week_change is None
        assert volume.busiest_days == []
