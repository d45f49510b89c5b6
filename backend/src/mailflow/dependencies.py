"""Request-scoped FastAPI dependencies.

get_context resolves the MailroomContext every mail operation runs in. The
organization always comes from the stored profile, never from the request
body or query parameters, so clients cannot tamper with it.
"""

from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from .auth.dependencies import get_current_user
from .database import get_db
from .models.user_profile import UserProfile
from .observability.correlation import bind_mail_room
from .tenancy.context import MailroomContext, resolve_context


def get_context(
    mail_room_id: Optional[int] = Query(
        None,
        description="Mailroom to work in (defaults to the profile's mailroom)",
    ),
    current_user: UserProfile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MailroomContext:
    """Resolve the MailroomContext for the request.

    The session is tagged with the organization id so new rows created while
    handling the request are owned by that organization.

    Raises:
        NotFoundError: If the selected mailroom is missing, inactive or in
            another organization
    """
    ctx = resolve_context(db, current_user, mail_room_id=mail_room_id)
    db.info["organization_id"] = ctx.organization_id
    bind_mail_room(ctx.mail_room_id)
    return ctx
