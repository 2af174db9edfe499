"""Team repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.team import Team, TeamMember, TeamWithRole
from domain.policies.roles import Role


class ITeamRepository(Protocol):
    """Repository interface for Team entities and memberships.

    Soft-deleted teams are invisible to every lookup.
    """

    async def get(self, id: UUID) -> Team | None:
        """Get a team by ID."""
        ...

    async def get_by_slug(self, slug: str) -> Team | None:
        """Get a team by slug."""
        ...

    async def get_all_for_user(self, user_id: UUID) -> list[TeamWithRole]:
        """Get all teams a user is a member of, with the user's role."""
        ...

    async def create(self, team: Team) -> Team:
        """Create a new team. Raises IntegrityError on a slug collision."""
        ...

    async def update(self, team: Team) -> Team:
        """Update an existing team (including ``deleted_at``)."""
        ...

    async def get_member(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        """Get a membership by team and user IDs."""
        ...

    async def get_members(self, team_id: UUID) -> list[TeamMember]:
        """Get all members of a team with their user loaded, oldest first."""
        ...

    async def add_member(self, member: TeamMember) -> TeamMember:
        """Add a member to a team."""
        ...

    async def update_member_role(self, team_id: UUID, user_id: UUID, role: Role) -> TeamMember:
        """Update a member's role in a team."""
        ...

    async def remove_member(self, team_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a team."""
        ...

    async def count_owners(self, team_id: UUID) -> int:
        """Count owners, locking their rows for the rest of the transaction."""
        ...
