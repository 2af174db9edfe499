"""Project repository protocol."""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from domain.entities.project import Project, ProjectMember
from domain.policies.roles import Role


class IProjectRepository(Protocol):
    """Repository interface for Project entities and memberships."""

    async def get(self, id: UUID) -> Project | None:
        """Get a project by ID."""
        ...

    async def get_by_slug(self, slug: str) -> Project | None:
        """Get a project by slug."""
        ...

    async def list_for_team(
        self,
        team_id: UUID,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Project]:
        """List a team's projects, newest first, optionally filtered by name."""
        ...

    async def create(self, project: Project) -> Project:
        """Create a new project. Raises IntegrityError on a slug collision."""
        ...

    async def update(self, project: Project) -> Project:
        """Update an existing project."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a project with its memberships and milestones."""
        ...

    async def get_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None:
        """Get a membership by project and user IDs."""
        ...

    async def get_members(self, project_id: UUID) -> list[ProjectMember]:
        """Get all members of a project with their user loaded, oldest first."""
        ...

    async def get_member_ids(self, project_id: UUID, user_ids: Iterable[UUID]) -> set[UUID]:
        """Return the subset of ``user_ids`` that are members of the project."""
        ...

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        """Add a member to a project."""
        ...

    async def update_member_role(
        self, project_id: UUID, user_id: UUID, role: Role
    ) -> ProjectMember:
        """Update a member's role in a project."""
        ...

    async def remove_member(self, project_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a project."""
        ...

    async def count_with_roles(self, project_id: UUID, roles: Iterable[Role]) -> int:
        """Count members holding any of ``roles``, locking the counted rows."""
        ...
