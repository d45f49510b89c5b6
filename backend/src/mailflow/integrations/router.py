"""Integration endpoints (ADMIN only)."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.integration import Integration
from ..models.user_profile import UserProfile
from . import service
from .schemas import (
    IntegrationCreate,
    IntegrationListResponse,
    IntegrationResponse,
    IntegrationUpdate,
)


router = APIRouter(prefix="/integrations", tags=["Integrations"])


@router.get("", response_model=IntegrationListResponse, summary="List integrations")
def list_integrations(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> IntegrationListResponse:
    integrations = service.list_integrations(db, admin_user.organization_id, active_only=active_only)
    return IntegrationListResponse(
        integrations=[IntegrationResponse.model_validate(item) for item in integrations],
        total=len(integrations),
    )


@router.post(
    "",
    response_model=IntegrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an integration",
)
def create_integration(
    data: IntegrationCreate,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> Integration:
    integration = service.create_integration(db, admin_user.organization_id, data, actor_id=admin_user.id)
    db.commit()
    db.refresh(integration)
    return integration


@router.get("/{integration_id}", response_model=IntegrationResponse, summary="Get an integration")
def get_integration(
    integration_id: int,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> Integration:
    return service.get_integration(db, admin_user.organization_id, integration_id)


@router.patch("/{integration_id}", response_model=IntegrationResponse, summary="Update an integration")
def update_integration(
    integration_id: int,
    data: IntegrationUpdate,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> Integration:
    integration = service.update_integration(
        db, admin_user.organization_id, integration_id, data, actor_id=admin_user.id
    )
    db.commit()
    db.refresh(integration)
    return integration


@router.post("/{integration_id}/sync", response_model=IntegrationResponse, summary="Record a completed sync")
def record_sync(
    integration_id: int,
    db: Session = Depends(get_db),
    admin_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> Integration:
    integration = service.record_sync(db, admin_user.organization_id, integration_id, actor_id=admin_user.id)
    db.commit()
    db.refresh(integration)
    return integration
