"""Pydantic schemas for Project API."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    """Schema for creating a Project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    team_id: UUID


class ProjectUpdate(BaseModel):
    """Schema for updating a Project (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)


class ProjectResponse(BaseModel):
    """Schema for Project response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: Optional[str]
    team_id: UUID
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    """Schema for list of Projects response."""

    data: List[ProjectResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class ProjectDetailResponse(BaseModel):
    """Schema for single Project response."""

    data: ProjectResponse
