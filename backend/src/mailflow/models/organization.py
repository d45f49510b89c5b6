"""Organization model - Root entity for multi-tenant isolation"""

from sqlalchemy import Column, Integer, Text, DateTime
from sqlalchemy.orm import validates, relationship

from .base import Base, PortableJSONB, utcnow


class Organization(Base):
    """
    Organization model - Root entity for the multi-tenant system.

    Each organization represents a distinct tenant with isolated data.
    Mailrooms, user profiles, external people and mail items all reference
    organizations.id via foreign key.
    """
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    contact_name = Column(Text, nullable=True)
    contact_email = Column(Text, nullable=True)
    contact_phone = Column(Text, nullable=True)
    logo = Column(Text, nullable=True)
    settings = Column(PortableJSONB, nullable=True, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    mail_rooms = relationship("MailRoom", back_populates="organization", order_by="MailRoom.name")
    user_profiles = relationship("UserProfile", back_populates="organization")
    external_people = relationship("ExternalPerson", back_populates="organization")
    integrations = relationship("Integration", back_populates="organization", order_by="Integration.name")

    @validates('name')
    def validate_name(self, key, value):
        """
        Ensure organization name is not empty and within length limits.

        Raises:
            ValueError: If name is empty/whitespace or exceeds 200 characters
        """
        if not value or len(value.strip()) == 0:
            raise ValueError("Organization name cannot be empty")
        if len(value) > 200:
            raise ValueError("Organization name cannot exceed 200 characters")
        return value.strip()

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"
