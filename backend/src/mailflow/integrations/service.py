"""Integration management (admin only).

An integration describes where directory data comes from; running the
import itself is outside this service. Recording a sync stamps
last_synced_at so admins can see which sources are stale.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..domain.errors import NotFoundError, RecordValidationError
from ..models.audit_log import AuditAction
from ..models.integration import Integration
from .schemas import IntegrationConfiguration, IntegrationCreate, IntegrationUpdate

logger = logging.getLogger(__name__)


def list_integrations(db: Session, organization_id: int, active_only: bool = False) -> List[Integration]:
    """Active integrations first, then by name."""
    query = db.query(Integration).filter(Integration.organization_id == organization_id)
    if active_only:
        query = query.filter(Integration.is_active.is_(True))
    return query.order_by(Integration.is_active.desc(), Integration.name, Integration.id).all()


def get_integration(db: Session, organization_id: int, integration_id: int) -> Integration:
    integration = db.query(Integration).filter(
        Integration.id == integration_id,
        Integration.organization_id == organization_id,
    ).first()
    if integration is None:
        raise NotFoundError("Integration", integration_id)
    return integration


def create_integration(
    db: Session,
    organization_id: int,
    data: IntegrationCreate,
    actor_id: Optional[int] = None,
) -> Integration:
    integration = Integration(
        organization_id=organization_id,
        name=data.name,
        type=data.type,
        configuration=data.configuration.model_dump(exclude_none=True),
        is_active=data.is_active,
    )
    db.add(integration)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.CREATE,
        user_id=actor_id,
        table_name="integrations",
        record_id=integration.id,
        details={"name": integration.name, "type": integration.type.value},
    )
    logger.info("Integration created", extra={"org_id": organization_id, "integration_id": integration.id})
    return integration


def update_integration(
    db: Session,
    organization_id: int,
    integration_id: int,
    data: IntegrationUpdate,
    actor_id: Optional[int] = None,
) -> Integration:
    """Apply a partial update.

    Configuration keys sent in the request replace the stored ones; keys not
    sent are kept, so a stored api_key survives edits to the schedule.

    Raises:
        RecordValidationError: If a required field is cleared
    """
    integration = get_integration(db, organization_id, integration_id)
    changes = data.model_dump(exclude_unset=True)
    for required in ("name", "type", "configuration", "is_active"):
        if required in changes and changes[required] is None:
            raise RecordValidationError(f"{required} cannot be cleared", field=required)

    if "configuration" in changes:
        merged = {
            **(integration.configuration or {}),
            **data.configuration.model_dump(exclude_unset=True),
        }
        changes["configuration"] = IntegrationConfiguration.model_validate(merged).model_dump(exclude_none=True)

    for field, value in changes.items():
        setattr(integration, field, value)
    db.flush()

    # Field names only; configuration may hold credentials
    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.UPDATE,
        user_id=actor_id,
        table_name="integrations",
        record_id=integration.id,
        details={"fields": sorted(changes)},
    )
    return integration


def record_sync(
    db: Session,
    organization_id: int,
    integration_id: int,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Integration:
    """Stamp last_synced_at on an active integration.

    Raises:
        RecordValidationError: If the integration is inactive
    """
    integration = get_integration(db, organization_id, integration_id)
    if not integration.is_active:
        raise RecordValidationError(f"Integration {integration_id} is inactive", field="is_active")

    integration.last_synced_at = now or datetime.now(timezone.utc)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.OTHER,
        user_id=actor_id,
        table_name="integrations",
        record_id=integration.id,
        details={"event": "sync"},
    )
    logger.info("Integration synced", extra={"org_id": organization_id, "integration_id": integration.id})
    return integration
