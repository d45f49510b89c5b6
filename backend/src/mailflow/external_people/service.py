"""External people management (staff and above)."""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..domain.errors import NotFoundError, RecordValidationError
from ..models.audit_log import AuditAction
from ..models.external_person import ExternalPerson
from .schemas import ExternalPersonCreate, ExternalPersonUpdate


def list_external_people(
    db: Session,
    organization_id: int,
    active_only: bool = False,
    search: Optional[str] = None,
) -> List[ExternalPerson]:
    query = db.query(ExternalPerson).filter(ExternalPerson.organization_id == organization_id)
    if active_only:
        query = query.filter(ExternalPerson.is_active.is_(True))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                (ExternalPerson.first_name + " " + ExternalPerson.last_name).ilike(pattern),
                ExternalPerson.email.ilike(pattern),
            )
        )
    return query.order_by(ExternalPerson.last_name, ExternalPerson.first_name, ExternalPerson.id).all()


def get_external_person(db: Session, organization_id: int, person_id: int) -> ExternalPerson:
    person = db.query(ExternalPerson).filter(
        ExternalPerson.id == person_id,
        ExternalPerson.organization_id == organization_id,
    ).first()
    if person is None:
        raise NotFoundError("ExternalPerson", person_id)
    return person


def create_external_person(
    db: Session,
    organization_id: int,
    data: ExternalPersonCreate,
    actor_id: Optional[int] = None,
) -> ExternalPerson:
    person = ExternalPerson(organization_id=organization_id, **data.model_dump())
    db.add(person)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.CREATE,
        user_id=actor_id,
        table_name="external_people",
        record_id=person.id,
        details={"name": person.full_name},
    )
    return person


def update_external_person(
    db: Session,
    organization_id: int,
    person_id: int,
    data: ExternalPersonUpdate,
    actor_id: Optional[int] = None,
) -> ExternalPerson:
    person = get_external_person(db, organization_id, person_id)
    changes = data.model_dump(exclude_unset=True)
    for required in ("first_name", "last_name", "is_active"):
        if required in changes and changes[required] is None:
            raise RecordValidationError(f"{required} cannot be cleared", field=required)

    for field, value in changes.items():
        setattr(person, field, value)
    db.flush()

    log_audit_event(
        db=db,
        organization_id=organization_id,
        action=AuditAction.UPDATE,
        user_id=actor_id,
        table_name="external_people",
        record_id=person.id,
        details={"fields": sorted(changes)},
    )
    return person
