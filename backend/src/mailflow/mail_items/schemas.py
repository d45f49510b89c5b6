"""Pydantic schemas for mail item endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.mail_items import Carrier, MailItemStatus, MailItemType
from ..models.notification import NotificationStatus, NotificationType


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class MailItemCreate(BaseModel):
    """Intake payload.

    type is required; it is declared optional here so that the service can
    report a missing type with the same error for every caller.
    """
    mail_room_id: Optional[int] = Field(None, description="Defaults to the context mailroom")
    recipient_id: Optional[int] = Field(None, description="Recipient user profile")
    external_recipient_id: Optional[int] = Field(None, description="Recipient external person")
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[Carrier] = Field(None, description="Defaults to the organization's default carrier")
    type: Optional[MailItemType] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    is_priority: bool = False
    label_image: Optional[str] = None
    received_at: Optional[datetime] = None

    @field_validator("tracking_number", "description", "notes")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class MailItemUpdate(BaseModel):
    """Partial edit of an open mail item. Only provided fields change."""
    recipient_id: Optional[int] = None
    external_recipient_id: Optional[int] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[Carrier] = None
    type: Optional[MailItemType] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    is_priority: Optional[bool] = None

    @field_validator("tracking_number", "description", "notes")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class PickupRequest(BaseModel):
    """Hand-over details recorded with a pickup."""
    processed_by_id: Optional[int] = Field(None, description="Defaults to the acting staff member")
    signature: Optional[str] = None
    photo_confirmation: Optional[str] = None
    notes: Optional[str] = None


class StatusChangeRequest(BaseModel):
    """Optional reason recorded in the audit log for exception outcomes."""
    reason: Optional[str] = Field(None, max_length=500)


class MailItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    mail_room_id: int
    recipient_id: Optional[int] = None
    external_recipient_id: Optional[int] = None
    recipient_name: Optional[str] = None
    tracking_number: Optional[str] = None
    carrier: Carrier
    type: MailItemType
    description: Optional[str] = None
    notes: Optional[str] = None
    is_priority: bool
    status: MailItemStatus
    received_at: datetime
    notified_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    processed_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class PickupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    processed_by_id: int
    picked_up_at: datetime
    signature: Optional[str] = None
    photo_confirmation: Optional[str] = None
    notes: Optional[str] = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    destination: str
    message: str
    status: NotificationStatus
    created_at: datetime


class MailItemDetailResponse(MailItemResponse):
    """Mail item with its hand-over and notification history."""
    allowed_transitions: List[MailItemStatus] = Field(default_factory=list)
    pickups: List[PickupResponse] = Field(default_factory=list)
    notifications: List[NotificationResponse] = Field(default_factory=list)


class MailItemListResponse(BaseModel):
    items: List[MailItemResponse]
    total: int
    page: int
    per_page: int
    total_pages: int
