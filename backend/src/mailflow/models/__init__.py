"""SQLAlchemy Models for MailFlow"""

from .base import Base
from .organization import Organization
from .mail_room import MailRoom
from .user_profile import UserProfile
from .external_person import ExternalPerson
from .mail_item import MailItem
from .pickup import Pickup
from .notification import Notification, NotificationType, NotificationStatus
from .audit_log import AuditLog, AuditAction
from .integration import Integration, IntegrationType

__all__ = [
    "Base",
    "Organization",
    "MailRoom",
    "UserProfile",
    "ExternalPerson",
    "MailItem",
    "Pickup",
    "Notification",
    "NotificationType",
    "NotificationStatus",
    "AuditLog",
    "AuditAction",
    "Integration",
    "IntegrationType",
]
