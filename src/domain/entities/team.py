"""Team domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.user import User
from domain.policies.roles import Role


class TeamType(StrEnum):
    """PERSONAL teams belong to exactly one user for their whole life."""

    PERSONAL = "personal"
    TEAM = "team"


@dataclass
class Team:
    """Domain entity for a Team."""

    name: str
    type: TeamType = TeamType.TEAM
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    profile_image: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def is_personal(self) -> bool:
        return self.type == TeamType.PERSONAL

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class TeamMember:
    """Domain entity for a team membership."""

    team_id: UUID
    user_id: UUID
    role: Role = Role.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)
    invited_by: UUID | None = None
    # Populated by listing queries only
    user: User | None = None


@dataclass
class TeamWithRole:
    """A team together with the caller's role in it."""

    team: Team
    role: Role
