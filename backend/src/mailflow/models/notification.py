"""Notification model - message sent to a recipient about a mail item"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow, value_enum


class NotificationType(str, Enum):
    """Delivery channel of a notification."""
    EMAIL = "email"
    SMS = "sms"
    APP = "app"
    OTHER = "other"


class NotificationStatus(str, Enum):
    """Delivery state reported by the outbound channel.

    Rows are written as PENDING; the delivery worker owns the other states.
    """
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    PENDING = "pending"


class Notification(Base):
    """Outbound message queued when a mail item transitions to notified."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    mail_item_id = Column(Integer, ForeignKey("mail_items.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("user_profiles.id"), nullable=True)
    external_recipient_id = Column(Integer, ForeignKey("external_people.id"), nullable=True)
    type = Column(value_enum(NotificationType, "notification_type"), nullable=False, default=NotificationType.EMAIL)
    destination = Column(Text, nullable=False, comment="Email address or phone number")
    message = Column(Text, nullable=False)
    status = Column(
        value_enum(NotificationStatus, "notification_status"),
        nullable=False,
        default=NotificationStatus.PENDING,
    )
    sent_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "(recipient_id IS NOT NULL AND external_recipient_id IS NULL) OR "
            "(recipient_id IS NULL AND external_recipient_id IS NOT NULL)",
            name="ck_notifications_recipient",
        ),
        Index("notifications_mail_item_id_idx", "mail_item_id"),
    )

    mail_item = relationship("MailItem", back_populates="notifications")
