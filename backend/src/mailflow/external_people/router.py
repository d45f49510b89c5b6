"""External people endpoints (STAFF or higher)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.external_person import ExternalPerson
from ..models.user_profile import UserProfile
from . import service
from .schemas import (
    ExternalPersonCreate,
    ExternalPersonListResponse,
    ExternalPersonResponse,
    ExternalPersonUpdate,
)


router = APIRouter(prefix="/external-people", tags=["External People"])


@router.get("", response_model=ExternalPersonListResponse, summary="List external people")
def list_external_people(
    active_only: bool = Query(False),
    search: Optional[str] = Query(None, description="Name or email"),
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
) -> ExternalPersonListResponse:
    people = service.list_external_people(
        db, current_user.organization_id, active_only=active_only, search=search
    )
    return ExternalPersonListResponse(people=people, total=len(people))


@router.post(
    "",
    response_model=ExternalPersonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an external person",
)
def create_external_person(
    data: ExternalPersonCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
) -> ExternalPerson:
    person = service.create_external_person(db, current_user.organization_id, data, actor_id=current_user.id)
    db.commit()
    db.refresh(person)
    return person


@router.get("/{person_id}", response_model=ExternalPersonResponse, summary="Get an external person")
def get_external_person(
    person_id: int,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
) -> ExternalPerson:
    return service.get_external_person(db, current_user.organization_id, person_id)


@router.patch("/{person_id}", response_model=ExternalPersonResponse, summary="Update an external person")
def update_external_person(
    person_id: int,
    data: ExternalPersonUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
) -> ExternalPerson:
    person = service.update_external_person(
        db, current_user.organization_id, person_id, data, actor_id=current_user.id
    )
    db.commit()
    db.refresh(person)
    return person
