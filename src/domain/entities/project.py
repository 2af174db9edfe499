"""Project domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from domain.entities.user import User
from domain.policies.roles import Role


@dataclass
class Project:
    """Domain entity for a Project. Always owned by one team."""

    name: str
    team_id: UUID
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    description: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class ProjectMember:
    """Domain entity for a project membership.

    ``team_id`` is denormalised from the project so a membership row can be
    keyed by ``(user_id, team_id, project_id)``.
    """

    project_id: UUID
    team_id: UUID
    user_id: UUID
    role: Role = Role.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)
    invited_by: UUID | None = None
    # Populated by listing queries only
    user: User | None = None
