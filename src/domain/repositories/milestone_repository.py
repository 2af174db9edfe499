"""Milestone repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.milestone import Milestone, MilestoneAssignee, MilestoneStatus


class IMilestoneRepository(Protocol):
    """Repository interface for Milestone entities and assignments.

    Milestones are returned with their assignee users loaded.
    """

    async def get(self, id: UUID) -> Milestone | None:
        """Get a milestone by ID."""
        ...

    async def get_by_slug(self, slug: str) -> Milestone | None:
        """Get a milestone by slug."""
        ...

    async def list_for_project(
        self, project_id: UUID, status: MilestoneStatus | None = None
    ) -> list[Milestone]:
        """List a project's milestones, oldest first."""
        ...

    async def create(self, milestone: Milestone) -> Milestone:
        """Create a new milestone. Raises IntegrityError on a slug collision."""
        ...

    async def update(self, milestone: Milestone) -> Milestone:
        """Update scalar fields of a milestone."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a milestone and its assignments."""
        ...

    async def get_assignee(self, milestone_id: UUID, user_id: UUID) -> MilestoneAssignee | None:
        """Get a single assignment."""
        ...

    async def add_assignee(self, assignee: MilestoneAssignee) -> MilestoneAssignee:
        """Assign a user to a milestone."""
        ...

    async def remove_assignee(self, milestone_id: UUID, user_id: UUID) -> bool:
        """Unassign a user. Returns False if there was nothing to remove."""
        ...

    async def unassign_from_project(self, project_id: UUID, user_id: UUID) -> int:
        """Drop every assignment ``user_id`` holds on the project's milestones."""
        ...

    async def count_by_status(self, project_id: UUID) -> dict[MilestoneStatus, int]:
        """Count a project's milestones per status."""
        ...
