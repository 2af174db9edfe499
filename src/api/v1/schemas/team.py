"""Pydantic schemas for Team API."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TeamCreate(BaseModel):
    """Schema for creating a Team."""

    name: str = Field(..., min_length=1, max_length=255)
    profile_image: Optional[str] = Field(None, max_length=500)


class TeamUpdate(BaseModel):
    """Schema for updating a Team (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    profile_image: Optional[str] = Field(None, max_length=500)


class TeamResponse(BaseModel):
    """Schema for Team response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Acme",
                "slug": "acme-k3x9q2",
                "type": "team",
                "profile_image": None,
                "role": "owner",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    slug: str
    type: str
    profile_image: Optional[str] = None
    role: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TeamListResponse(BaseModel):
    """Schema for list of Teams response."""

    data: List[TeamResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class TeamDetailResponse(BaseModel):
    """Schema for single Team response."""

    data: TeamResponse


class MemberResponse(BaseModel):
    """Schema for a team or project membership."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    role: str
    joined_at: datetime


class MemberListResponse(BaseModel):
    """Schema for list of members response."""

    data: List[MemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UpdateMemberRoleRequest(BaseModel):
    """Schema for updating a member's role. Validity depends on the resource."""

    role: str = Field(..., min_length=1, max_length=20)
