"""AuditLog SQLAlchemy model"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow, value_enum


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    OTHER = "other"


class AuditLog(Base):
    """AuditLog model for immutable event logging.

    Records every mutation made through the API for compliance and the
    dashboard activity feed. Entries are append-only and should never be
    updated or deleted.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("audit_logs_organization_id_idx", "organization_id"),
        Index("audit_logs_organization_id_created_at_idx", "organization_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    user_id = Column(Integer, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)
    action = Column(value_enum(AuditAction, "audit_action"), nullable=False)
    table_name = Column(Text, nullable=True)
    record_id = Column(Integer, nullable=True)
    details = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    organization = relationship("Organization")
    user = relationship("UserProfile")
