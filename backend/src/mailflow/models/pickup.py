"""Pickup model - record of a mail item handed over to its recipient"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class Pickup(Base):
    """Hand-over record written when a mail item transitions to picked_up.

    Carries the proof of delivery (signature, photo) that does not belong on
    the mail item itself.
    """
    __tablename__ = "pickups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    mail_item_id = Column(Integer, ForeignKey("mail_items.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("user_profiles.id"), nullable=True)
    external_recipient_id = Column(Integer, ForeignKey("external_people.id"), nullable=True)
    processed_by_id = Column(Integer, ForeignKey("user_profiles.id"), nullable=False)
    picked_up_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    signature = Column(Text, nullable=True)
    photo_confirmation = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "(recipient_id IS NOT NULL AND external_recipient_id IS NULL) OR "
            "(recipient_id IS NULL AND external_recipient_id IS NOT NULL)",
            name="ck_pickups_recipient",
        ),
        Index("pickups_mail_item_id_idx", "mail_item_id"),
    )

    mail_item = relationship("MailItem", back_populates="pickups")
    processed_by = relationship("UserProfile", foreign_keys=[processed_by_id])
