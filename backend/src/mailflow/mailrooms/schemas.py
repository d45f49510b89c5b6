"""Pydantic schemas for mailroom endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MailRoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Main Lobby"])
    location: Optional[str] = Field(None, examples=["Building A, ground floor"])

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Whitespace-only names strip to "" and fail min_length."""
        return v.strip() if isinstance(v, str) else v


class MailRoomUpdate(BaseModel):
    """Partial update. Setting is_active=false deactivates the mailroom."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class MailRoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    name: str
    location: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MailRoomListResponse(BaseModel):
    mail_rooms: List[MailRoomResponse]
    total: int
