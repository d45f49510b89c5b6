"""MailRoom model - physical intake location within an organization"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow


class MailRoom(Base):
    """A physical location where mail is received and processed.

    Belongs to exactly one organization. Mailrooms are never hard-deleted;
    they are soft-deactivated through is_active.
    """
    __tablename__ = "mail_rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    name = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organization = relationship("Organization", back_populates="mail_rooms")

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_mail_rooms_org_name"),
        Index("mail_rooms_organization_id_idx", "organization_id"),
    )

    @validates("name")
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Mailroom name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<MailRoom(id={self.id}, organization_id={self.organization_id}, name='{self.name}')>"
