"""ExternalPerson model - mail recipients without an application account"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship, validates

from .base import Base, PortableJSONB, utcnow
from .user_profile import EMAIL_PATTERN


class ExternalPerson(Base):
    """Guest, visitor or contractor who receives mail but cannot log in.

    external_id links the record to an outside directory (HR system export,
    visitor management, ...).
    """
    __tablename__ = "external_people"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    department = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    external_id = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organization = relationship("Organization", back_populates="external_people")

    __table_args__ = (
        Index("external_people_organization_id_idx", "organization_id"),
    )

    @validates("email")
    def validate_email(self, key, value):
        if value is None:
            return None
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value.lower()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<ExternalPerson(id={self.id}, organization_id={self.organization_id})>"
