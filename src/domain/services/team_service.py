"""Team service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    LastOwnerError,
    MemberNotFoundError,
    PersonalTeamError,
    TeamNotFoundError,
)
from domain.entities.team import Team, TeamMember, TeamType, TeamWithRole
from domain.policies.permissions import Action
from domain.policies.roles import ResourceKind, Role, parse_role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import as_uuid, require_team_permission
from domain.services.slugs import create_with_unique_slug

logger = structlog.get_logger()

PERSONAL_TEAM_NAME = "Personal"


async def insert_team_with_owner(uow: IUnitOfWork, team: Team, owner_id: UUID) -> Team:
    """Insert a team and its creator's OWNER membership in the caller's unit of work."""
    created = await uow.teams.create(team)
    await uow.teams.add_member(
        TeamMember(team_id=created.id, user_id=owner_id, role=Role.OWNER)
    )
    return created


class TeamService:
    """Service layer for Team and team membership business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create_team(
        self,
        name: str,
        type: TeamType,
        creator_id: UUID,
        profile_image: str | None = None,
        slug_source: str | None = None,
    ) -> Team:
        """Create a team with the creator as its only OWNER.

        The slug is derived from ``slug_source`` (default: ``name``) plus a
        random suffix, retried on collision.
        """

        async def _create(slug: str) -> Team:
            async with self._uow_factory() as uow:
                team = Team(name=name, type=type, slug=slug, profile_image=profile_image)
                created = await insert_team_with_owner(uow, team, creator_id)
                await uow.commit()
                return created

        team = await create_with_unique_slug(slug_source or name, _create, fallback="team")
        logger.info(
            "team_created",
            team_id=str(team.id),
            slug=team.slug,
            type=team.type.value,
            creator_id=str(creator_id),
        )
        return team

    async def ensure_personal_team(self, user_id: UUID, first_name: str, last_name: str) -> Team:
        """Return the user's PERSONAL team, creating it if missing."""
        async with self._uow_factory() as uow:
            for entry in await uow.teams.get_all_for_user(user_id):
                if entry.team.is_personal:
                    return entry.team

        return await self.create_team(
            PERSONAL_TEAM_NAME,
            TeamType.PERSONAL,
            user_id,
            slug_source=f"{first_name} {last_name}",
        )

    async def get_team(self, id_or_slug: UUID | str, user_id: UUID) -> Team:
        """Get a team by ID or slug, verifying membership."""
        async with self._uow_factory() as uow:
            team = await self._resolve(uow, id_or_slug)
            await require_team_permission(uow, team.id, user_id, Action.READ)
            return team

    async def get_user_teams(self, user_id: UUID) -> list[TeamWithRole]:
        """Get all non-deleted teams a user belongs to, with their role."""
        async with self._uow_factory() as uow:
            return await uow.teams.get_all_for_user(user_id)  # type: ignore[no-any-return]

    async def update_team(
        self,
        team_id: UUID,
        user_id: UUID,
        name: str | None = None,
        profile_image: str | None = None,
    ) -> Team:
        """Rename a team or change its image. Requires OWNER."""
        async with self._uow_factory() as uow:
            team = await self._get(uow, team_id)
            await require_team_permission(uow, team_id, user_id, Action.UPDATE)

            if name is not None:
                team.name = name
            if profile_image is not None:
                team.profile_image = profile_image

            team.updated_at = datetime.utcnow()
            updated = await uow.teams.update(team)
            await uow.commit()
            return updated

    async def delete_team(self, team_id: UUID, user_id: UUID) -> None:
        """Soft-delete a team. Requires OWNER; PERSONAL teams are kept."""
        async with self._uow_factory() as uow:
            team = await self._get(uow, team_id)
            await require_team_permission(uow, team_id, user_id, Action.DELETE)

            if team.is_personal:
                raise PersonalTeamError("Personal teams cannot be deleted")

            team.deleted_at = datetime.utcnow()
            team.updated_at = team.deleted_at
            await uow.teams.update(team)
            await uow.commit()

        logger.info("team_deleted", team_id=str(team_id), user_id=str(user_id))

    async def set_member_role(
        self,
        team_id: UUID,
        user_id: UUID,
        new_role: Role | str,
        acting_user_id: UUID,
    ) -> TeamMember:
        """Change a member's role.

        Raises:
            ForbiddenError: acting user may not manage the team.
            InvalidRoleError: role does not exist on teams (e.g. admin).
            MemberNotFoundError: target is not a member.
            LastOwnerError: the team would be left without an OWNER.
        """
        async with self._uow_factory() as uow:
            await self._get(uow, team_id)
            await require_team_permission(uow, team_id, acting_user_id, Action.MANAGE)
            role = parse_role(new_role, ResourceKind.TEAM)

            target = await uow.teams.get_member(team_id, user_id)
            if not target:
                raise MemberNotFoundError(str(user_id))

            if target.role == role:
                return target

            if target.role == Role.OWNER and await uow.teams.count_owners(team_id) <= 1:
                raise LastOwnerError("team")

            updated = await uow.teams.update_member_role(team_id, user_id, role)
            await uow.commit()

        logger.info(
            "team_member_role_changed",
            team_id=str(team_id),
            user_id=str(user_id),
            old_role=target.role.name.lower(),
            new_role=role.name.lower(),
            acting_user_id=str(acting_user_id),
        )
        return updated  # type: ignore[no-any-return]

    async def remove_member(self, team_id: UUID, user_id: UUID, acting_user_id: UUID) -> None:
        """Remove a member. Requires OWNER; the sole OWNER cannot be removed."""
        async with self._uow_factory() as uow:
            await self._get(uow, team_id)
            await require_team_permission(uow, team_id, acting_user_id, Action.MANAGE)

            target = await uow.teams.get_member(team_id, user_id)
            if not target:
                raise MemberNotFoundError(str(user_id))

            if target.role == Role.OWNER and await uow.teams.count_owners(team_id) <= 1:
                raise LastOwnerError("team")

            await uow.teams.remove_member(team_id, user_id)
            await uow.commit()

        logger.info(
            "team_member_removed",
            team_id=str(team_id),
            user_id=str(user_id),
            acting_user_id=str(acting_user_id),
        )

    async def list_members(
        self, team_id: UUID, caller_id: UUID, query: str | None = None
    ) -> list[TeamMember]:
        """List team members, optionally filtered by name or e-mail substring."""
        async with self._uow_factory() as uow:
            await self._get(uow, team_id)
            await require_team_permission(uow, team_id, caller_id, Action.READ)
            members = await uow.teams.get_members(team_id)

        if query and query.strip():
            members = [m for m in members if m.user is not None and m.user.matches(query)]
        return members  # type: ignore[no-any-return]

    # --- Internal helpers ---

    @staticmethod
    async def _get(uow: IUnitOfWork, team_id: UUID) -> Team:
        team = await uow.teams.get(team_id)
        if not team:
            raise TeamNotFoundError(str(team_id))
        return team

    @staticmethod
    async def _resolve(uow: IUnitOfWork, id_or_slug: UUID | str) -> Team:
        team_id = as_uuid(id_or_slug)
        if team_id is not None:
            team = await uow.teams.get(team_id)
        else:
            team = await uow.teams.get_by_slug(str(id_or_slug))
        if not team:
            raise TeamNotFoundError(str(id_or_slug))
        return team
