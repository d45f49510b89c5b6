"""Recipients directory - everyone mail can be addressed to.

Combines active user profiles (type "internal") and active external people
(type "external") into one list sorted by name.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..external_people.service import list_external_people
from ..users.service import list_user_profiles
from .schemas import RecipientEntry


def search_recipients(
    db: Session,
    organization_id: int,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[RecipientEntry]:
    internal = [
        RecipientEntry(
            id=profile.id,
            type="internal",
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=profile.email,
            phone=profile.phone,
            department=profile.department,
            location=profile.location,
        )
        for profile in list_user_profiles(db, organization_id, active_only=True, search=search)
    ]
    external = [
        RecipientEntry(
            id=person.id,
            type="external",
            first_name=person.first_name,
            last_name=person.last_name,
            email=person.email,
            phone=person.phone,
            department=person.department,
            location=person.location,
        )
        for person in list_external_people(db, organization_id, active_only=True, search=search)
    ]

    entries = sorted(
        internal + external,
        key=lambda entry: (entry.last_name.lower(), entry.first_name.lower(), entry.type, entry.id),
    )
    return entries[:limit] if limit else entries
