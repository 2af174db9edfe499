"""Invitation repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, ResourceType


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get an invitation by its hashed token."""
        ...

    async def update(self, invitation: Invitation) -> Invitation:
        """Persist status and consumption fields of an invitation."""
        ...

    async def get_pending_for_resource(
        self, resource_type: ResourceType, resource_id: UUID
    ) -> list[Invitation]:
        """Get pending (non-expired) invitations for a team or project."""
        ...

    async def get_pending_for_resource_email(
        self, resource_type: ResourceType, resource_id: UUID, email: str
    ) -> Invitation | None:
        """Get a pending (non-expired) invitation for a resource and email."""
        ...

    async def get_pending_for_email(self, email: str) -> list[Invitation]:
        """Get all pending (non-expired) invitations for an email address."""
        ...

    async def expire_old_invitations(self) -> int:
        """Mark all expired pending invitations. Returns count of updated rows."""
        ...
