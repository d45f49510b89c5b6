"""Integration model - external source that syncs directory data"""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship, validates

from .base import Base, PortableJSONB, utcnow, value_enum


class IntegrationType(str, Enum):
    CSV = "csv"
    API = "api"
    OTHER = "other"


class Integration(Base):
    """Connection to an outside system that feeds the people directory.

    configuration holds the connection details (url, api_key, schedule,
    field mappings). last_synced_at is stamped when a sync is recorded.
    """
    __tablename__ = "integrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    name = Column(Text, nullable=False)
    type = Column(value_enum(IntegrationType, "integration_type"), nullable=False, default=IntegrationType.CSV)
    configuration = Column(PortableJSONB, nullable=False, default=dict)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organization = relationship("Organization", back_populates="integrations")

    __table_args__ = (
        Index("integrations_organization_id_idx", "organization_id"),
    )

    @validates("name")
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Integration name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<Integration(id={self.id}, organization_id={self.organization_id}, type={self.type})>"
