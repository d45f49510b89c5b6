"""Pydantic schemas for dashboard endpoints."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from ..domain.mail_items import MailItemType


class MailStats(BaseModel):
    """Headline numbers for the dashboard of one organization or mailroom."""
    pending_count: int = Field(..., description="Items pending or notified")
    priority_count: int = Field(..., description="Priority items pending or notified")
    delivered_today_count: int = Field(..., description="Items picked up today (UTC)")
    delivered_yesterday_count: int = Field(..., description="Items picked up yesterday (UTC)")
    delivered_diff: int = Field(..., description="Today minus yesterday")
    aging_count: int = Field(..., description="Open items older than the aging threshold")
    aging_threshold_days: int
    oldest_days: int = Field(..., description="Age in whole days of the oldest open item")
    avg_processing_days: float = Field(..., description="Mean receive-to-pickup time, last 14 days")
    processing_diff: float = Field(..., description="Change against the previous 14 days")


class TypeCount(BaseModel):
    type: MailItemType
    count: int


class BusiestPeriod(BaseModel):
    """Share of recent intake falling on the busiest weekday or hour."""
    label: str
    type: str
    value: int = Field(..., description="Percentage of items in the busiest period")
    period: str


class DelayedItem(BaseModel):
    id: int
    tracking_number: Optional[str] = None
    recipient_name: Optional[str] = None
    mail_room_id: int
    days_waiting: int
    is_priority: bool


class DelayedItemList(BaseModel):
    items: List[DelayedItem]
    total: int


class WeeklyVolume(BaseModel):
    """Intake for one week, weeks starting Monday (UTC)."""
    week_start: date
    total_items: int
    picked_up: int
    pending: int = Field(..., description="Items still pending or notified")
    priority_items: int
    avg_processing_hours: float = Field(
        ..., description="Mean hours from receipt to pickup; open items count up to now"
    )


class WeekdayShare(BaseModel):
    day: str
    percentage: int


class MailVolume(BaseModel):
    """Weekly intake trend over the insight window."""
    window_days: int
    total_items: int
    weeks: List[WeeklyVolume] = Field(..., description="Every week touching the window, oldest first")
    week_over_week_change: Optional[int] = Field(
        None, description="Percent change of this week against last week; null when last week had no intake"
    )
    busiest_days: List[WeekdayShare] = Field(..., description="The two weekdays with the most intake")
