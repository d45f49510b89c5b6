"""UserProfile SQLAlchemy model"""

import re

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import relationship, validates

from ..auth.roles import UserRole
from .base import Base, PortableJSONB, utcnow, value_enum

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class UserProfile(Base):
    """Application profile of an authenticated identity.

    user_id links to the identity provider's user (token subject). Each
    profile belongs to one organization and optionally to one of that
    organization's mailrooms; the role determines permissions.
    """
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True)
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    mail_room_id = Column(
        Integer,
        ForeignKey("mail_rooms.id", ondelete="SET NULL"),
        nullable=True,
    )
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    role = Column(value_enum(UserRole, "user_role"), nullable=False, default=UserRole.RECIPIENT)
    department = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    settings = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="user_profiles")
    mail_room = relationship("MailRoom")

    __table_args__ = (
        Index("user_profiles_organization_id_idx", "organization_id"),
        Index("user_profiles_user_id_idx", "user_id"),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not value or not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value.lower()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<UserProfile(id={self.id}, organization_id={self.organization_id}, role={self.role})>"
