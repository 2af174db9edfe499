"""SQLAlchemy implementation of Team repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.team import Team, TeamMember, TeamType, TeamWithRole
from domain.policies.roles import Role
from infrastructure.database.models import TeamMemberModel, TeamModel, UserModel
from infrastructure.database.repositories.sqlalchemy_user_repo import user_to_entity

# Map string role values in DB to Role enum
ROLE_TO_ENUM = {
    "owner": Role.OWNER,
    "admin": Role.ADMIN,
    "member": Role.MEMBER,
}

ENUM_TO_ROLE = {v: k for k, v in ROLE_TO_ENUM.items()}


class SQLAlchemyTeamRepository:
    """SQLAlchemy implementation of ITeamRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Team | None:
        """Get a team by ID."""
        stmt = select(TeamModel).where(TeamModel.id == id, TeamModel.deleted_at.is_(None))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Team | None:
        """Get a team by slug."""
        stmt = select(TeamModel).where(TeamModel.slug == slug, TeamModel.deleted_at.is_(None))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all_for_user(self, user_id: UUID) -> list[TeamWithRole]:
        """Get all teams a user is a member of, with the user's role."""
        stmt = (
            select(TeamModel, TeamMemberModel.role)
            .join(TeamMemberModel, TeamMemberModel.team_id == TeamModel.id)
            .where(TeamMemberModel.user_id == user_id, TeamModel.deleted_at.is_(None))
            .order_by(TeamModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            TeamWithRole(team=self._to_entity(model), role=ROLE_TO_ENUM[role])
            for model, role in result.all()
        ]

    async def create(self, team: Team) -> Team:
        """Create a new team."""
        model = self._to_model(team)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, team: Team) -> Team:
        """Update an existing team."""
        stmt = select(TeamModel).where(TeamModel.id == team.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Team {team.id} not found")

        model.name = team.name
        model.profile_image = team.profile_image
        model.updated_at = team.updated_at
        model.deleted_at = team.deleted_at

        await self._session.flush()
        return self._to_entity(model)

    async def get_member(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        """Get a team member by team and user IDs."""
        stmt = select(TeamMemberModel).where(
            TeamMemberModel.team_id == team_id,
            TeamMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._member_to_entity(model) if model else None

    async def get_members(self, team_id: UUID) -> list[TeamMember]:
        """Get all members of a team with their user."""
        stmt = (
            select(TeamMemberModel, UserModel)
            .join(UserModel, UserModel.id == TeamMemberModel.user_id)
            .where(TeamMemberModel.team_id == team_id)
            .order_by(TeamMemberModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(member, user) for member, user in result.all()]

    async def add_member(self, member: TeamMember) -> TeamMember:
        """Add a member to a team."""
        model = TeamMemberModel(
            team_id=member.team_id,
            user_id=member.user_id,
            role=ENUM_TO_ROLE[member.role],
            joined_at=member.joined_at,
            invited_by=member.invited_by,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def update_member_role(self, team_id: UUID, user_id: UUID, role: Role) -> TeamMember:
        """Update a member's role in a team."""
        stmt = select(TeamMemberModel).where(
            TeamMemberModel.team_id == team_id,
            TeamMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError("Member not found in team")

        model.role = ENUM_TO_ROLE[role]
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, team_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a team."""
        stmt = select(TeamMemberModel).where(
            TeamMemberModel.team_id == team_id,
            TeamMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_owners(self, team_id: UUID) -> int:
        """Count owners, locking their rows (FOR UPDATE is a no-op on SQLite)."""
        stmt = (
            select(TeamMemberModel.user_id)
            .where(
                TeamMemberModel.team_id == team_id,
                TeamMemberModel.role == "owner",
            )
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return len(result.scalars().all())

    def _to_entity(self, model: TeamModel) -> Team:
        """Convert ORM model to domain entity."""
        return Team(
            id=model.id,
            name=model.name,
            slug=model.slug,
            type=TeamType(model.type),
            profile_image=model.profile_image,
            created_at=model.created_at,
            updated_at=model.updated_at,
            deleted_at=model.deleted_at,
        )

    def _to_model(self, entity: Team) -> TeamModel:
        """Convert domain entity to ORM model."""
        return TeamModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            type=entity.type.value,
            profile_image=entity.profile_image,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            deleted_at=entity.deleted_at,
        )

    def _member_to_entity(
        self, model: TeamMemberModel, user: UserModel | None = None
    ) -> TeamMember:
        """Convert member ORM model to domain entity."""
        return TeamMember(
            team_id=model.team_id,
            user_id=model.user_id,
            role=ROLE_TO_ENUM[model.role],
            joined_at=model.joined_at,
            invited_by=model.invited_by,
            user=user_to_entity(user) if user else None,
        )
