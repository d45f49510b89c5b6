"""Pydantic schemas for organizations and their settings document.

OrganizationSettings is the shape of organizations.settings. Every field has
a default, so an empty {} is valid and is populated with defaults on read.
Invalid settings updates are rejected before they are saved.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..domain.mail_items import Carrier
from ..models.notification import NotificationType


class NotificationSettings(BaseModel):
    """Recipient notification configuration.

    default_channel decides where notify_mail_item sends a message; the
    channel must be enabled.
    """
    enable_email: bool = Field(default=True, description="Send email notifications")
    enable_sms: bool = Field(default=False, description="Send SMS notifications")
    default_channel: NotificationType = Field(
        default=NotificationType.EMAIL,
        description="Channel used when a mail item is marked notified",
    )
    email_subject: str = Field(
        default="You have new mail waiting for pickup",
        min_length=1,
        max_length=200,
        description="Subject line of notification emails",
    )
    reminder_interval_hours: int = Field(
        default=24,
        ge=1,
        le=720,
        description="Hours between reminders for uncollected items (1-720)",
    )

    @model_validator(mode="after")
    def check_channel_enabled(self) -> "NotificationSettings":
        if self.default_channel == NotificationType.EMAIL and not self.enable_email:
            raise ValueError("default_channel 'email' requires enable_email")
        if self.default_channel == NotificationType.SMS and not self.enable_sms:
            raise ValueError("default_channel 'sms' requires enable_sms")
        return self


class OrganizationSettings(BaseModel):
    """Complete organization settings document.

    Stored in organizations.settings. PATCH updates are deep-merged with the
    existing document and the result is validated against this schema.
    """
    notifications: NotificationSettings = Field(
        default_factory=NotificationSettings,
        description="Recipient notification behavior",
    )
    aging_threshold_days: int = Field(
        default=5,
        ge=1,
        le=365,
        description="Days after which an uncollected item counts as aging (1-365)",
    )
    default_carrier: Carrier = Field(
        default=Carrier.OTHER,
        description="Carrier preselected on intake",
    )


class NotificationSettingsUpdate(BaseModel):
    enable_email: Optional[bool] = None
    enable_sms: Optional[bool] = None
    default_channel: Optional[NotificationType] = None
    email_subject: Optional[str] = Field(None, min_length=1, max_length=200)
    reminder_interval_hours: Optional[int] = Field(None, ge=1, le=720)


class OrganizationSettingsUpdate(BaseModel):
    """Partial settings update (PATCH /organization/settings).

    Omitted fields keep their current values; nested objects are merged,
    not replaced.

    Example:
        Current: {"notifications": {"enable_email": true, "enable_sms": false}}
        Update:  {"notifications": {"enable_sms": true}}
        Result:  {"notifications": {"enable_email": true, "enable_sms": true}}
    """
    notifications: Optional[NotificationSettingsUpdate] = None
    aging_threshold_days: Optional[int] = Field(None, ge=1, le=365)
    default_carrier: Optional[Carrier] = None


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    logo: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrganizationUpdate(BaseModel):
    """Organization profile update (admin). All fields optional."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    address: Optional[str] = None
    contact_name: Optional[str] = Field(None, min_length=2)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("name", "contact_name", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Strip before length checks so blank values are rejected."""
        return v.strip() if isinstance(v, str) else v


class MailRoomSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: Optional[str] = None


class ContextResponse(BaseModel):
    """Resolved organization and mailroom for the current request."""
    organization: OrganizationResponse
    mail_room: Optional[MailRoomSummary] = None
    available_mail_rooms: list[MailRoomSummary] = Field(default_factory=list)
    user_id: int
    role: str
