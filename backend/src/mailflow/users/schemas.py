"""Pydantic schemas for user profile management endpoints.

Profiles are linked to identity provider accounts through user_id; no
credentials are stored or returned.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..auth.roles import UserRole


class UserProfileCreate(BaseModel):
    """Request schema for POST /users (ADMIN only)."""
    user_id: UUID = Field(..., description="Identity provider user id (token subject)")
    first_name: str = Field(..., min_length=1, max_length=100, examples=["Jane"])
    last_name: str = Field(..., min_length=1, max_length=100, examples=["Doe"])
    email: EmailStr = Field(..., examples=["jane.doe@example.com"])
    phone: Optional[str] = Field(None, max_length=50)
    role: UserRole = Field(UserRole.RECIPIENT, description="Determines permissions")
    mail_room_id: Optional[int] = Field(None, description="Default mailroom (same organization)")
    department: Optional[str] = None
    location: Optional[str] = None


class UserProfileUpdate(BaseModel):
    """Request schema for PATCH /users/{id} (ADMIN only). All fields optional."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    role: Optional[UserRole] = None
    mail_room_id: Optional[int] = None
    department: Optional[str] = None
    location: Optional[str] = None
    is_active: Optional[bool] = None


class OwnProfileUpdate(BaseModel):
    """Fields a profile owner may change on PATCH /users/me."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = None
    location: Optional[str] = None
    mail_room_id: Optional[int] = Field(None, description="Preferred mailroom")


class UserProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    organization_id: int
    mail_room_id: Optional[int] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    department: Optional[str] = None
    location: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserProfileListResponse(BaseModel):
    users: List[UserProfileResponse]
    total: int
