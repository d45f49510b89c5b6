"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating bearer tokens from requests
- Loading the user profile of the authenticated identity
- Enforcing role-based access control (RBAC)

Usage:
    @router.get("/protected")
    def protected_endpoint(user: UserProfile = Depends(get_current_user)):
        return {"message": f"Hello {user.first_name}"}

    @router.post("/mail-rooms")
    def create_mail_room(user: UserProfile = Depends(require_role(UserRole.MANAGER))):
        ...
"""

import logging
from typing import Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user_profile import UserProfile
from .jwt import decode_token, get_subject
from ..observability.correlation import bind_actor
from .roles import UserRole, has_permission

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> UserProfile:
    """Validate the bearer token and return the matching user profile.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or has no profile
        HTTPException 403: If the profile is deactivated
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
        user_id = get_subject(payload)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")
    except ValueError as e:
        raise _unauthorized(f"Invalid token claims: {str(e)}")

    user = db.execute(
        select(UserProfile).where(UserProfile.user_id == user_id)
    ).scalar_one_or_none()
    if not user:
        logger.warning("Token subject has no user profile", extra={"subject": str(user_id)})
        raise _unauthorized("User profile not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    bind_actor(user.id, user.organization_id)
    return user


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces the role hierarchy.

    Higher roles inherit permissions from lower roles
    (admin > manager > staff > recipient).

    Example:
        @router.post("/mail-items")
        def receive(user: UserProfile = Depends(require_role(UserRole.STAFF))):
            ...
    """

    def role_dependency(current_user: UserProfile = Depends(get_current_user)) -> UserProfile:
        user_role = UserRole(current_user.role)
        if not has_permission(user_role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role.value}",
            )
        return current_user

    return role_dependency
