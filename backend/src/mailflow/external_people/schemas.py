"""Pydantic schemas for external people (recipients without an account)."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ExternalPersonCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = None
    location: Optional[str] = None
    external_id: Optional[str] = Field(None, description="Identifier in an outside directory")


class ExternalPersonUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = None
    location: Optional[str] = None
    external_id: Optional[str] = None
    is_active: Optional[bool] = None


class ExternalPersonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    external_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ExternalPersonListResponse(BaseModel):
    people: List[ExternalPersonResponse]
    total: int
