"""Pydantic schemas for integration endpoints.

API keys are write-only: responses replace a stored key with a fixed mask.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.integration import IntegrationType

API_KEY_MASK = "********"

SyncSchedule = Literal["hourly", "daily", "weekly", "monthly", "manual"]


class IntegrationConfiguration(BaseModel):
    """Shape of integrations.configuration."""
    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = Field(None, description="Endpoint or file location")
    api_key: Optional[str] = Field(None, description="Credential for API integrations")
    schedule: SyncSchedule = Field("manual", description="How often data is synchronized")
    mappings: Dict[str, str] = Field(default_factory=dict, description="Source field to directory field")


class IntegrationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200, examples=["HR directory export"])
    type: IntegrationType = IntegrationType.CSV
    configuration: IntegrationConfiguration = Field(default_factory=IntegrationConfiguration)
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class IntegrationUpdate(BaseModel):
    """Partial update; configuration keys are merged into the stored document."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    type: Optional[IntegrationType] = None
    configuration: Optional[IntegrationConfiguration] = None
    is_active: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class IntegrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    name: str
    type: IntegrationType
    configuration: Dict[str, Any]
    last_synced_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("configuration", mode="before")
    @classmethod
    def mask_api_key(cls, v):
        v = dict(v or {})
        if v.get("api_key"):
            v["api_key"] = API_KEY_MASK
        return v


class IntegrationListResponse(BaseModel):
    integrations: List[IntegrationResponse]
    total: int
