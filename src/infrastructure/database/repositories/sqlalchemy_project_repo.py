"""SQLAlchemy implementation of Project repository."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.project import Project, ProjectMember
from domain.policies.roles import Role
from infrastructure.database.models import (
    InvitationModel,
    MilestoneAssigneeModel,
    MilestoneModel,
    ProjectMemberModel,
    ProjectModel,
    TeamModel,
    UserModel,
)
from infrastructure.database.repositories.sqlalchemy_team_repo import ENUM_TO_ROLE, ROLE_TO_ENUM
from infrastructure.database.repositories.sqlalchemy_user_repo import user_to_entity


class SQLAlchemyProjectRepository:
    """SQLAlchemy implementation of IProjectRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Project | None:
        """Get a project by ID."""
        stmt = self._live().where(ProjectModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Project | None:
        """Get a project by slug."""
        stmt = self._live().where(ProjectModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_for_team(
        self,
        team_id: UUID,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Project]:
        """List a team's projects, newest first."""
        stmt = self._live().where(ProjectModel.team_id == team_id)
        if search:
            stmt = stmt.where(ProjectModel.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(ProjectModel.created_at.desc()).limit(limit).offset(offset)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, project: Project) -> Project:
        """Create a new project."""
        model = self._to_model(project)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, project: Project) -> Project:
        """Update an existing project."""
        stmt = select(ProjectModel).where(ProjectModel.id == project.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Project {project.id} not found")

        model.name = project.name
        model.description = project.description
        model.updated_at = project.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a project and everything hanging off it."""
        milestone_ids = select(MilestoneModel.id).where(MilestoneModel.project_id == id)
        await self._session.execute(
            delete(MilestoneAssigneeModel).where(
                MilestoneAssigneeModel.milestone_id.in_(milestone_ids)
            )
        )
        await self._session.execute(delete(MilestoneModel).where(MilestoneModel.project_id == id))
        await self._session.execute(
            delete(ProjectMemberModel).where(ProjectMemberModel.project_id == id)
        )
        await self._session.execute(
            delete(InvitationModel).where(
                InvitationModel.resource_type == "project",
                InvitationModel.resource_id == id,
            )
        )
        result = await self._session.execute(delete(ProjectModel).where(ProjectModel.id == id))
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    async def get_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None:
        """Get a project member by project and user IDs."""
        stmt = select(ProjectMemberModel).where(
            ProjectMemberModel.project_id == project_id,
            ProjectMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._member_to_entity(model) if model else None

    async def get_members(self, project_id: UUID) -> list[ProjectMember]:
        """Get all members of a project with their user."""
        stmt = (
            select(ProjectMemberModel, UserModel)
            .join(UserModel, UserModel.id == ProjectMemberModel.user_id)
            .where(ProjectMemberModel.project_id == project_id)
            .order_by(ProjectMemberModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(member, user) for member, user in result.all()]

    async def get_member_ids(self, project_id: UUID, user_ids: Iterable[UUID]) -> set[UUID]:
        """Return the subset of ``user_ids`` that are members of the project."""
        ids = list(user_ids)
        if not ids:
            return set()
        stmt = select(ProjectMemberModel.user_id).where(
            ProjectMemberModel.project_id == project_id,
            ProjectMemberModel.user_id.in_(ids),
        )
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        """Add a member to a project."""
        model = ProjectMemberModel(
            project_id=member.project_id,
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

    async def update_member_role(
        self, project_id: UUID, user_id: UUID, role: Role
    ) -> ProjectMember:
        """Update a member's role in a project."""
        stmt = select(ProjectMemberModel).where(
            ProjectMemberModel.project_id == project_id,
            ProjectMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError("Member not found in project")

        model.role = ENUM_TO_ROLE[role]
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, project_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a project."""
        stmt = select(ProjectMemberModel).where(
            ProjectMemberModel.project_id == project_id,
            ProjectMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_with_roles(self, project_id: UUID, roles: Iterable[Role]) -> int:
        """Count members holding any of ``roles``, locking the counted rows."""
        stmt = (
            select(ProjectMemberModel.user_id)
            .where(
                ProjectMemberModel.project_id == project_id,
                ProjectMemberModel.role.in_([ENUM_TO_ROLE[role] for role in roles]),
            )
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return len(result.scalars().all())

    @staticmethod
    def _live() -> Select[tuple[ProjectModel]]:
        """Projects whose team has not been soft-deleted."""
        return (
            select(ProjectModel)
            .join(TeamModel, TeamModel.id == ProjectModel.team_id)
            .where(TeamModel.deleted_at.is_(None))
        )

    def _to_entity(self, model: ProjectModel) -> Project:
        """Convert ORM model to domain entity."""
        return Project(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            team_id=model.team_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Project) -> ProjectModel:
        """Convert domain entity to ORM model."""
        return ProjectModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            team_id=entity.team_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(
        self, model: ProjectMemberModel, user: UserModel | None = None
    ) -> ProjectMember:
        """Convert member ORM model to domain entity."""
        return ProjectMember(
            project_id=model.project_id,
            team_id=model.team_id,
            user_id=model.user_id,
            role=ROLE_TO_ENUM[model.role],
            joined_at=model.joined_at,
            invited_by=model.invited_by,
            user=user_to_entity(user) if user else None,
        )
