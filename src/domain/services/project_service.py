"""Project service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    InsufficientPermissionsError,
    LastAdminError,
    LastOwnerError,
    MemberNotFoundError,
    ProjectNotFoundError,
    TeamNotFoundError,
)
from domain.entities.project import Project, ProjectMember
from domain.policies.permissions import Action
from domain.policies.roles import ResourceKind, Role, parse_role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import (
    as_uuid,
    require_project_permission,
    require_team_permission,
)
from domain.services.slugs import create_with_unique_slug

logger = structlog.get_logger()


class ProjectService:
    """Service layer for Project and project membership business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create_project(
        self,
        name: str,
        description: str | None,
        team_id: UUID,
        creator_id: UUID,
    ) -> Project:
        """Create a project in a team with the creator as OWNER.

        Any authenticated caller may create a project in an existing team
        unless ``project_create_requires_team_manage`` is set.
        """

        async def _create(slug: str) -> Project:
            async with self._uow_factory() as uow:
                team = await uow.teams.get(team_id)
                if not team:
                    raise TeamNotFoundError(str(team_id))

                if settings.project_create_requires_team_manage:
                    await require_team_permission(uow, team_id, creator_id, Action.MANAGE)

                project = Project(name=name, team_id=team_id, slug=slug, description=description)
                created = await uow.projects.create(project)
                await uow.projects.add_member(
                    ProjectMember(
                        project_id=created.id,
                        team_id=team_id,
                        user_id=creator_id,
                        role=Role.OWNER,
                    )
                )
                await uow.commit()
                return created

        project = await create_with_unique_slug(name, _create, fallback="project")
        logger.info(
            "project_created",
            project_id=str(project.id),
            team_id=str(team_id),
            slug=project.slug,
            creator_id=str(creator_id),
        )
        return project

    async def get_project(self, id_or_slug: UUID | str, user_id: UUID) -> Project:
        """Get a project by ID or slug, verifying membership."""
        async with self._uow_factory() as uow:
            project = await self._resolve(uow, id_or_slug)
            await require_project_permission(uow, project.id, user_id, Action.READ)
            return project

    async def list_team_projects(
        self,
        team_id: UUID,
        user_id: UUID,
        search: str | None = None,
        limit: int = 50,
        page: int = 1,
    ) -> list[Project]:
        """List a team's projects. Requires team membership."""
        async with self._uow_factory() as uow:
            team = await uow.teams.get(team_id)
            if not team:
                raise TeamNotFoundError(str(team_id))
            await require_team_permission(uow, team_id, user_id, Action.READ)

            return await uow.projects.list_for_team(  # type: ignore[no-any-return]
                team_id,
                search=search.strip() if search else None,
                limit=limit,
                offset=(max(page, 1) - 1) * limit,
            )

    async def update_project(
        self,
        project_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Update a project. Requires ADMIN or OWNER."""
        async with self._uow_factory() as uow:
            project = await self._get(uow, project_id)
            await require_project_permission(uow, project_id, user_id, Action.UPDATE)

            if name is not None:
                project.name = name
            if description is not None:
                project.description = description

            project.updated_at = datetime.utcnow()
            updated = await uow.projects.update(project)
            await uow.commit()
            return updated

    async def delete_project(self, project_id: UUID, user_id: UUID) -> bool:
        """Delete a project with its memberships and milestones. Requires OWNER."""
        async with self._uow_factory() as uow:
            await self._get(uow, project_id)
            await require_project_permission(uow, project_id, user_id, Action.DELETE)

            deleted = await uow.projects.delete(project_id)
            await uow.commit()

        logger.info("project_deleted", project_id=str(project_id), user_id=str(user_id))
        return deleted  # type: ignore[no-any-return]

    async def set_member_role(
        self,
        project_id: UUID,
        user_id: UUID,
        new_role: Role | str,
        acting_user_id: UUID,
    ) -> ProjectMember:
        """Change a member's role.

        - ADMIN and OWNER may manage members
        - Only an OWNER may grant OWNER or change an OWNER's role
        - The last OWNER cannot be demoted
        - The last ADMIN of an ownerless project cannot demote themselves
        """
        async with self._uow_factory() as uow:
            await self._get(uow, project_id)
            actor = await require_project_permission(
                uow, project_id, acting_user_id, Action.MANAGE
            )
            role = parse_role(new_role, ResourceKind.PROJECT)

            target = await uow.projects.get_member(project_id, user_id)
            if not target:
                raise MemberNotFoundError(str(user_id))

            if target.role == role:
                return target

            if Role.OWNER in (role, target.role) and actor.role != Role.OWNER:
                raise InsufficientPermissionsError("manage owners", ResourceKind.PROJECT.value)

            if target.role == Role.OWNER:
                await self._guard_last_owner(uow, project_id)
            elif user_id == acting_user_id and role < Role.ADMIN:
                await self._guard_last_admin(uow, project_id)

            updated = await uow.projects.update_member_role(project_id, user_id, role)
            await uow.commit()

        logger.info(
            "project_member_role_changed",
            project_id=str(project_id),
            user_id=str(user_id),
            old_role=target.role.name.lower(),
            new_role=role.name.lower(),
            acting_user_id=str(acting_user_id),
        )
        return updated  # type: ignore[no-any-return]

    async def remove_member(self, project_id: UUID, user_id: UUID, acting_user_id: UUID) -> None:
        """Remove a member and their milestone assignments in this project.

        Same rules as ``set_member_role``.
        """
        async with self._uow_factory() as uow:
            await self._get(uow, project_id)
            actor = await require_project_permission(
                uow, project_id, acting_user_id, Action.MANAGE
            )

            target = await uow.projects.get_member(project_id, user_id)
            if not target:
                raise MemberNotFoundError(str(user_id))

            if target.role == Role.OWNER:
                if actor.role != Role.OWNER:
                    raise InsufficientPermissionsError(
                        "manage owners", ResourceKind.PROJECT.value
                    )
                await self._guard_last_owner(uow, project_id)
            elif user_id == acting_user_id and target.role == Role.ADMIN:
                await self._guard_last_admin(uow, project_id)

            await uow.milestones.unassign_from_project(project_id, user_id)
            await uow.projects.remove_member(project_id, user_id)
            await uow.commit()

        logger.info(
            "project_member_removed",
            project_id=str(project_id),
            user_id=str(user_id),
            acting_user_id=str(acting_user_id),
        )

    async def list_members(
        self, project_id: UUID, caller_id: UUID, query: str | None = None
    ) -> list[ProjectMember]:
        """List project members, optionally filtered by name or e-mail substring."""
        async with self._uow_factory() as uow:
            await self._get(uow, project_id)
            await require_project_permission(uow, project_id, caller_id, Action.READ)
            members = await uow.projects.get_members(project_id)

        if query and query.strip():
            members = [m for m in members if m.user is not None and m.user.matches(query)]
        return members  # type: ignore[no-any-return]

    # --- Internal helpers ---

    @staticmethod
    async def _guard_last_owner(uow: IUnitOfWork, project_id: UUID) -> None:
        if await uow.projects.count_with_roles(project_id, [Role.OWNER]) <= 1:
            raise LastOwnerError("project")

    @staticmethod
    async def _guard_last_admin(uow: IUnitOfWork, project_id: UUID) -> None:
        if await uow.projects.count_with_roles(project_id, [Role.OWNER]) > 0:
            return
        if await uow.projects.count_with_roles(project_id, [Role.ADMIN, Role.OWNER]) <= 1:
            raise LastAdminError()

    @staticmethod
    async def _get(uow: IUnitOfWork, project_id: UUID) -> Project:
        project = await uow.projects.get(project_id)
        if not project:
            raise ProjectNotFoundError(str(project_id))
        return project

    @staticmethod
    async def _resolve(uow: IUnitOfWork, id_or_slug: UUID | str) -> Project:
        project_id = as_uuid(id_or_slug)
        if project_id is not None:
            project = await uow.projects.get(project_id)
        else:
            project = await uow.projects.get_by_slug(str(id_or_slug))
        if not project:
            raise ProjectNotFoundError(str(id_or_slug))
        return project
