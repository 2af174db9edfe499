"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.invitation_repository import IInvitationRepository
from domain.repositories.milestone_repository import IMilestoneRepository
from domain.repositories.project_repository import IProjectRepository
from domain.repositories.team_repository import ITeamRepository
from domain.repositories.user_repository import IUserRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    users: IUserRepository
    teams: ITeamRepository
    projects: IProjectRepository
    invitations: IInvitationRepository
    milestones: IMilestoneRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
