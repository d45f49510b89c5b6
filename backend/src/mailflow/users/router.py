"""User profile endpoints.

Profile management (list, get, create, update) requires ADMIN. Every
authenticated profile can read and edit its own contact details through
/users/me.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user, require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.user_profile import UserProfile
from . import service
from .schemas import (
    OwnProfileUpdate,
    UserProfileCreate,
    UserProfileListResponse,
    UserProfileResponse,
    UserProfileUpdate,
)


router = APIRouter(prefix="/users", tags=["User Management"])


@router.get("/me", response_model=UserProfileResponse, summary="Current user's profile")
def get_own_profile(current_user: UserProfile = Depends(get_current_user)) -> UserProfile:
    return current_user


@router.patch("/me", response_model=UserProfileResponse, summary="Update own contact details")
def update_own_profile(
    data: OwnProfileUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> UserProfile:
    profile = service.update_user_profile(
        db, current_user, data.model_dump(exclude_unset=True), actor_id=current_user.id
    )
    db.commit()
    db.refresh(profile)
    return profile


@router.get("", response_model=UserProfileListResponse, summary="List user profiles (ADMIN only)")
def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    active_only: bool = Query(False, description="Only active profiles"),
    search: Optional[str] = Query(None, description="Name or email"),
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> UserProfileListResponse:
    users = service.list_user_profiles(
        db, current_user.organization_id, role=role, active_only=active_only, search=search
    )
    return UserProfileListResponse(users=users, total=len(users))


@router.post(
    "",
    response_model=UserProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user profile (ADMIN only)",
)
def create_user(
    data: UserProfileCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> UserProfile:
    profile = service.create_user_profile(db, current_user.organization_id, data, actor_id=current_user.id)
    db.commit()
    db.refresh(profile)
    return profile


@router.get("/{profile_id}", response_model=UserProfileResponse, summary="Get a user profile (ADMIN only)")
def get_user(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> UserProfile:
    return service.get_user_profile(db, current_user.organization_id, profile_id)


@router.patch("/{profile_id}", response_model=UserProfileResponse, summary="Update a user profile (ADMIN only)")
def update_user(
    profile_id: int,
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(UserRole.ADMIN)),
) -> UserProfile:
    profile = service.get_user_profile(db, current_user.organization_id, profile_id)
    profile = service.update_user_profile(
        db, profile, data.model_dump(exclude_unset=True), actor_id=current_user.id
    )
    db.commit()
    db.refresh(profile)
    return profile
