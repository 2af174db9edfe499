"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invitation import Invitation, InvitationStatus, ResourceType
from infrastructure.database.models import InvitationModel


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        model = self._to_model(invitation)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        stmt = select(InvitationModel).where(InvitationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get an invitation by its hashed token."""
        stmt = select(InvitationModel).where(InvitationModel.token_hash == token_hash)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update(self, invitation: Invitation) -> Invitation:
        """Persist status and consumption fields."""
        stmt = select(InvitationModel).where(InvitationModel.id == invitation.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Invitation {invitation.id} not found")

        model.status = invitation.status.value
        model.consumed_at = invitation.consumed_at
        model.consumed_by = invitation.consumed_by

        await self._session.flush()
        return self._to_entity(model)

    async def get_pending_for_resource(
        self, resource_type: ResourceType, resource_id: UUID
    ) -> list[Invitation]:
        """Get pending (non-expired) invitations for a team or project."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.resource_type == resource_type.value,
                InvitationModel.resource_id == resource_id,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > datetime.utcnow(),
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_resource_email(
        self, resource_type: ResourceType, resource_id: UUID, email: str
    ) -> Invitation | None:
        """Get a pending invitation for a specific resource and email."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.resource_type == resource_type.value,
                InvitationModel.resource_id == resource_id,
                InvitationModel.email == email,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > datetime.utcnow(),
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_pending_for_email(self, email: str) -> list[Invitation]:
        """Get all pending (non-expired) invitations for an email address."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.email == email,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > datetime.utcnow(),
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def expire_old_invitations(self) -> int:
        """Mark all expired pending invitations. Returns count of updated rows."""
        now = datetime.utcnow()
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at <= now,
            )
            .values(status=InvitationStatus.EXPIRED.value)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            resource_type=ResourceType(model.resource_type),
            resource_id=model.resource_id,
            email=model.email,
            token_hash=model.token_hash,
            invited_by=model.invited_by,
            status=InvitationStatus(model.status),
            created_at=model.created_at,
            expires_at=model.expires_at,
            consumed_at=model.consumed_at,
            consumed_by=model.consumed_by,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            resource_type=entity.resource_type.value,
            resource_id=entity.resource_id,
            email=entity.email,
            token_hash=entity.token_hash,
            invited_by=entity.invited_by,
            status=entity.status.value,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            consumed_at=entity.consumed_at,
            consumed_by=entity.consumed_by,
        )
