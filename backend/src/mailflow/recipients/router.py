"""Recipients directory endpoint used by mail intake."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.user_profile import UserProfile
from .schemas import RecipientListResponse
from .service import search_recipients


router = APIRouter(prefix="/recipients", tags=["Recipients"])


@router.get("", response_model=RecipientListResponse, summary="Search recipients")
def list_recipients(
    search: Optional[str] = Query(None, description="Name or email"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.STAFF)),
) -> RecipientListResponse:
    recipients = search_recipients(db, current_user.organization_id, search=search, limit=limit)
    return RecipientListResponse(recipients=recipients, total=len(recipients))
