"""Invitation domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from core.config import settings
from domain.entities.events import InviteCreated
from domain.entities.project import Project, ProjectMember
from domain.entities.team import Team, TeamMember


class ResourceType(StrEnum):
    """What an invitation grants membership of."""

    TEAM = "team"
    PROJECT = "project"


class InvitationStatus(StrEnum):
    """Status of an invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass
class Invitation:
    """Domain entity for a team or project invitation.

    Only the SHA-256 of the signed token is stored; the token itself is
    handed to the inviter once and never persisted.
    """

    resource_type: ResourceType
    resource_id: UUID
    email: str
    invited_by: UUID
    token_hash: str = ""
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=settings.invitation_ttl_days)
    )
    consumed_at: datetime | None = None
    consumed_by: UUID | None = None

    @property
    def is_expired(self) -> bool:
        """Check if the invitation has expired."""
        return self.status == InvitationStatus.EXPIRED or datetime.utcnow() > self.expires_at

    @property
    def is_pending(self) -> bool:
        """Check if the invitation is still pending and not expired."""
        return self.status == InvitationStatus.PENDING and not self.is_expired

    @property
    def is_consumed(self) -> bool:
        return self.status == InvitationStatus.ACCEPTED

    def accept(self, user_id: UUID) -> None:
        """Mark the invitation as consumed by ``user_id``."""
        self.status = InvitationStatus.ACCEPTED
        self.consumed_at = datetime.utcnow()
        self.consumed_by = user_id

    def revoke(self) -> None:
        """Mark the invitation as revoked."""
        self.status = InvitationStatus.REVOKED


@dataclass(frozen=True)
class InvitationClaims:
    """Verified contents of an invitation token."""

    resource_type: ResourceType
    resource_id: UUID
    email: str
    expires_at: datetime
    invitation_id: UUID


@dataclass
class InvitationResult:
    """Outcome of creating an invitation: the row, the token, and events to dispatch."""

    invitation: Invitation
    token: str
    events: list[InviteCreated] = field(default_factory=list)


@dataclass
class InvitationPreview:
    """What an invite landing page needs before the invitee signs in."""

    claims: InvitationClaims
    resource_name: str
    team_name: str
    status: InvitationStatus
    inviter_name: str
    has_account: bool


@dataclass
class AcceptedInvitation:
    """Result of accepting an invitation.

    ``membership`` is a TeamMember for team invitations and a ProjectMember
    for project invitations. ``created`` is False when the caller was already
    a member or had already consumed this invitation.
    """

    invitation: Invitation
    membership: TeamMember | ProjectMember
    team: Team
    project: Project | None = None
    created: bool = True
