"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import EmailField


class CreateInvitationRequest(EmailField):
    """Schema for inviting someone to a team or project."""

    ttl_days: Optional[int] = Field(None, ge=1, description="Defaults to 7 days")


class AcceptInvitationRequest(BaseModel):
    """Schema for accepting an invitation."""

    token: str = Field(..., min_length=1)


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "resource_type": "project",
                "resource_id": "456e4567-e89b-12d3-a456-426614174000",
                "email": "user@example.com",
                "status": "pending",
                "invited_by": "789e4567-e89b-12d3-a456-426614174000",
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-08T10:00:00",
            }
        },
    )

    id: UUID
    resource_type: str
    resource_id: UUID
    email: str
    status: str
    invited_by: UUID
    created_at: datetime
    expires_at: datetime
    consumed_at: Optional[datetime] = None
    consumed_by: Optional[UUID] = None


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InvitationCreatedResponse(BaseModel):
    """Schema for invitation creation response (includes raw token)."""

    data: InvitationResponse
    token: str = Field(
        ...,
        description="Signed invitation token. Share this with the invitee. "
        "This value is only shown once.",
    )
    link: str


class InvitationPreviewResponse(BaseModel):
    """What the invite landing page shows before sign-in."""

    resource_type: str
    resource_id: UUID
    resource_name: str
    team_name: str
    email: str
    status: str
    inviter_name: str
    has_account: bool
    expires_at: datetime


class AcceptInvitationResponse(BaseModel):
    """Schema for accepting an invitation response."""

    resource_type: str
    team_id: UUID
    team_slug: str
    team_name: str
    project_id: Optional[UUID] = None
    project_slug: Optional[str] = None
    project_name: Optional[str] = None
    role: str
    created: bool
    message: str = "Invitation accepted successfully"
