"""Pydantic schemas for Milestone API."""

from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.schemas.common import UserSummary
from domain.entities.milestone import MilestoneStatus


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class MilestoneCreate(BaseModel):
    """Schema for creating a Milestone."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    status: MilestoneStatus = MilestoneStatus.BACKLOG
    assignee_ids: List[UUID] = Field(default_factory=list)
    due_at: Optional[datetime] = None

    @field_validator("due_at")
    @classmethod
    def normalize_due_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class MilestoneUpdate(BaseModel):
    """Schema for editing a Milestone (all fields optional).

    ``assignee_ids`` replaces the whole assignee list when present.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    status: Optional[MilestoneStatus] = None
    due_at: Optional[datetime] = None
    clear_due_at: bool = False
    assignee_ids: Optional[List[UUID]] = None

    @field_validator("due_at")
    @classmethod
    def normalize_due_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class StatusChangeRequest(BaseModel):
    """Schema for moving a milestone to another status."""

    status: MilestoneStatus


class MilestoneResponse(BaseModel):
    """Schema for Milestone response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    name: str
    description: Optional[str]
    project_id: UUID
    status: str
    due_at: Optional[datetime]
    due_status: str
    next_status: Optional[str] = None
    previous_status: Optional[str] = None
    assignees: List[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MilestoneListResponse(BaseModel):
    """Schema for list of Milestones response."""

    data: List[MilestoneResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class MilestoneDetailResponse(BaseModel):
    """Schema for single Milestone response."""

    data: MilestoneResponse


class ProgressResponse(BaseModel):
    """Per-status milestone counts for a project (cancelled excluded)."""

    counts: dict[str, int]
    total: int
    done_percentage: float


class AssigneeChangeResponse(BaseModel):
    """Whether an assign/unassign call changed anything."""

    changed: bool
