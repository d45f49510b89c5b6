"""Write-time enforcement of tenant isolation.

Every reference a tenant row makes to another tenant row (mailroom, recipient,
processing user, mail item) must point into the same organization. The check
runs in a before_flush listener so it covers services, scripts and tests
alike; a violation aborts the flush with TenantMismatchError.

The listener is registered on import (see database.py).
"""

import logging
from typing import Any, Iterable, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from ..domain.errors import TenantMismatchError
from ..models.audit_log import AuditLog
from ..models.external_person import ExternalPerson
from ..models.mail_item import MailItem
from ..models.mail_room import MailRoom
from ..models.notification import Notification
from ..models.pickup import Pickup
from ..models.user_profile import UserProfile

logger = logging.getLogger(__name__)

# (foreign key attribute, relationship attribute or None, referenced model)
Reference = Tuple[str, Optional[str], type]

TENANT_REFERENCES: dict[type, Tuple[Reference, ...]] = {
    UserProfile: (
        ("mail_room_id", "mail_room", MailRoom),
    ),
    MailItem: (
        ("mail_room_id", "mail_room", MailRoom),
        ("recipient_id", "recipient", UserProfile),
        ("external_recipient_id", "external_recipient", ExternalPerson),
        ("processed_by_id", "processed_by", UserProfile),
    ),
    Notification: (
        ("mail_item_id", "mail_item", MailItem),
        ("recipient_id", None, UserProfile),
        ("external_recipient_id", None, ExternalPerson),
    ),
    Pickup: (
        ("recipient_id", None, UserProfile),
        ("external_recipient_id", None, ExternalPerson),
        ("processed_by_id", "processed_by", UserProfile),
    ),
    AuditLog: (
        ("user_id", "user", UserProfile),
    ),
}


def _referenced(session: Session, instance: Any, fk_attr: str, rel_attr: Optional[str], model: type):
    """Return the row an instance points at, preferring a freshly assigned relationship."""
    if rel_attr is not None and get_history(instance, rel_attr).has_changes():
        return getattr(instance, rel_attr)
    ref_id = getattr(instance, fk_attr)
    if ref_id is None:
        return None
    return session.get(model, ref_id)


def _organization_of(session: Session, instance: Any) -> Optional[int]:
    if isinstance(instance, Pickup):
        mail_item = _referenced(session, instance, "mail_item_id", "mail_item", MailItem)
        return mail_item.organization_id if mail_item is not None else None
    organization_id = getattr(instance, "organization_id", None)
    if organization_id is None:
        organization_id = session.info.get("organization_id")
    return organization_id


def check_tenant_references(session: Session, instances: Iterable[Any]) -> None:
    """Raise TenantMismatchError if any instance references another organization.

    Rows whose own organization is not known yet are skipped; the NOT NULL
    constraint on organization_id rejects them at the database.
    """
    with session.no_autoflush:
        for instance in instances:
            references = TENANT_REFERENCES.get(type(instance))
            if not references:
                continue
            organization_id = _organization_of(session, instance)
            if organization_id is None:
                continue

            for fk_attr, rel_attr, model in references:
                target = _referenced(session, instance, fk_attr, rel_attr, model)
                if target is None or target.organization_id is None:
                    continue
                if target.organization_id != organization_id:
                    logger.warning(
                        "Cross-tenant reference rejected",
                        extra={
                            "org_id": organization_id,
                            "table": instance.__tablename__,
                            "field": fk_attr,
                        },
                    )
                    raise TenantMismatchError(
                        f"{instance.__class__.__name__}.{fk_attr} references a "
                        f"{model.__name__} of another organization",
                        field=fk_attr,
                    )


@event.listens_for(Session, "before_flush")
def enforce_tenant_references(session, flush_context, instances):
    """Reject cross-organization references on new and modified rows."""
    check_tenant_references(session, list(session.new) + list(session.dirty))
