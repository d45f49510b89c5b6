"""MailItem model - a physical letter or package tracked through the mailroom

A mail item is created on intake (status=pending), moves through the status
state machine in domain.mail_items.status, and becomes immutable once it
reaches a terminal status.
"""

from typing import Any, Dict

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text
)
from sqlalchemy.orm import relationship

from ..domain.mail_items import Carrier, MailItemStatus, MailItemType, is_terminal
from .base import Base, PortableJSONB, utcnow, value_enum


class MailItem(Base):
    """Mail item header with recipient, carrier and lifecycle timestamps.

    Lifecycle:
    1. Logged at a mailroom by staff (status=pending, received_at)
    2. Recipient notified (status=notified, notified_at)
    3. Picked up at the counter (status=picked_up, picked_up_at, processed_by_id)
       or closed as returned_to_sender / lost / other

    Multi-tenant isolation: All queries MUST filter by organization_id.
    """

    __tablename__ = "mail_items"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Multi-tenant isolation (REQUIRED on all queries)
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    mail_room_id = Column(
        Integer,
        ForeignKey("mail_rooms.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Recipient: a user profile or an external person, never both
    recipient_id = Column(Integer, ForeignKey("user_profiles.id"), nullable=True)
    external_recipient_id = Column(Integer, ForeignKey("external_people.id"), nullable=True)

    tracking_number = Column(Text, nullable=True)
    carrier = Column(value_enum(Carrier, "carrier"), nullable=False, default=Carrier.OTHER)
    type = Column(value_enum(MailItemType, "mail_item_type"), nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_priority = Column(Boolean, nullable=False, default=False)

    # State machine
    status = Column(
        value_enum(MailItemStatus, "mail_item_status"),
        nullable=False,
        default=MailItemStatus.PENDING,
        comment="pending → notified → picked_up | returned_to_sender | lost | other",
    )
    received_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    notified_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    processed_by_id = Column(
        Integer,
        ForeignKey("user_profiles.id"),
        nullable=True,
        comment="Staff member who handed the item over",
    )

    label_image = Column(Text, nullable=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "NOT (recipient_id IS NOT NULL AND external_recipient_id IS NOT NULL)",
            name="ck_mail_items_single_recipient",
        ),
        CheckConstraint(
            "notified_at IS NULL OR status <> 'pending'",
            name="ck_mail_items_notified_at_after_notify",
        ),
        CheckConstraint(
            "status NOT IN ('notified', 'picked_up') OR notified_at IS NOT NULL",
            name="ck_mail_items_notified_at_required",
        ),
        CheckConstraint(
            "(status = 'picked_up' AND picked_up_at IS NOT NULL AND processed_by_id IS NOT NULL)"
            " OR (status <> 'picked_up' AND picked_up_at IS NULL)",
            name="ck_mail_items_picked_up_at",
        ),
        Index("mail_items_organization_id_idx", "organization_id"),
        Index("mail_items_mail_room_id_idx", "mail_room_id"),
        Index("mail_items_recipient_id_idx", "recipient_id"),
        Index("mail_items_external_recipient_id_idx", "external_recipient_id"),
        Index("mail_items_status_idx", "status"),
        Index("mail_items_received_at_idx", "received_at"),
    )

    # Relationships
    organization = relationship("Organization")
    mail_room = relationship("MailRoom")
    recipient = relationship("UserProfile", foreign_keys=[recipient_id])
    external_recipient = relationship("ExternalPerson", foreign_keys=[external_recipient_id])
    processed_by = relationship("UserProfile", foreign_keys=[processed_by_id])
    pickups = relationship("Pickup", back_populates="mail_item", order_by="Pickup.picked_up_at")
    notifications = relationship("Notification", back_populates="mail_item", order_by="Notification.created_at")

    @property
    def is_terminal(self) -> bool:
        return self.status is not None and is_terminal(self.status)

    @property
    def recipient_name(self) -> str | None:
        person = self.recipient or self.external_recipient
        return person.full_name if person else None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict of column values with enums unwrapped."""
        return {
            'id': self.id,
            'organization_id': self.organization_id,
            'mail_room_id': self.mail_room_id,
            'recipient_id': self.recipient_id,
            'external_recipient_id': self.external_recipient_id,
            'tracking_number': self.tracking_number,
            'carrier': getattr(self.carrier, 'value', self.carrier),
            'type': getattr(self.type, 'value', self.type),
            'description': self.description,
            'notes': self.notes,
            'is_priority': self.is_priority,
            'status': getattr(self.status, 'value', self.status),
            'received_at': self.received_at.isoformat() if self.received_at else None,
            'notified_at': self.notified_at.isoformat() if self.notified_at else None,
            'picked_up_at': self.picked_up_at.isoformat() if self.picked_up_at else None,
            'processed_by_id': self.processed_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<MailItem(id={self.id}, status={self.status}, tracking_number={self.tracking_number!r})>"
