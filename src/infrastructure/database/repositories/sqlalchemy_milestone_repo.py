"""SQLAlchemy implementation of Milestone repository."""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.milestone import Milestone, MilestoneAssignee, MilestoneStatus
from domain.entities.user import User
from infrastructure.database.models import (
    MilestoneAssigneeModel,
    MilestoneModel,
    ProjectModel,
    TeamModel,
    UserModel,
)
from infrastructure.database.repositories.sqlalchemy_user_repo import user_to_entity


class SQLAlchemyMilestoneRepository:
    """SQLAlchemy implementation of IMilestoneRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Milestone | None:
        """Get a milestone by ID."""
        stmt = self._live().where(MilestoneModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        assignees = await self._load_assignees([model.id])
        return self._to_entity(model, assignees.get(model.id, []))

    async def get_by_slug(self, slug: str) -> Milestone | None:
        """Get a milestone by slug."""
        stmt = self._live().where(MilestoneModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        assignees = await self._load_assignees([model.id])
        return self._to_entity(model, assignees.get(model.id, []))

    async def list_for_project(
        self, project_id: UUID, status: MilestoneStatus | None = None
    ) -> list[Milestone]:
        """List a project's milestones, oldest first."""
        stmt = select(MilestoneModel).where(MilestoneModel.project_id == project_id)
        if status is not None:
            stmt = stmt.where(MilestoneModel.status == status.value)
        stmt = stmt.order_by(MilestoneModel.created_at)
        result = await self._session.execute(stmt)
        models = list(result.scalars())

        assignees = await self._load_assignees([model.id for model in models])
        return [self._to_entity(model, assignees.get(model.id, [])) for model in models]

    async def create(self, milestone: Milestone) -> Milestone:
        """Create a new milestone (assignees are added separately)."""
        model = MilestoneModel(
            id=milestone.id,
            slug=milestone.slug,
            name=milestone.name,
            description=milestone.description,
            project_id=milestone.project_id,
            status=milestone.status.value,
            due_at=milestone.due_at,
            created_at=milestone.created_at,
            updated_at=milestone.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model, [])

    async def update(self, milestone: Milestone) -> Milestone:
        """Update scalar fields of a milestone."""
        stmt = select(MilestoneModel).where(MilestoneModel.id == milestone.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Milestone {milestone.id} not found")

        model.name = milestone.name
        model.description = milestone.description
        model.status = milestone.status.value
        model.due_at = milestone.due_at
        model.updated_at = milestone.updated_at

        await self._session.flush()
        return self._to_entity(model, milestone.assignees)

    async def delete(self, id: UUID) -> bool:
        """Delete a milestone and its assignments."""
        await self._session.execute(
            delete(MilestoneAssigneeModel).where(MilestoneAssigneeModel.milestone_id == id)
        )
        result = await self._session.execute(
            delete(MilestoneModel).where(MilestoneModel.id == id)
        )
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    async def get_assignee(self, milestone_id: UUID, user_id: UUID) -> MilestoneAssignee | None:
        """Get a single assignment."""
        stmt = select(MilestoneAssigneeModel).where(
            MilestoneAssigneeModel.milestone_id == milestone_id,
            MilestoneAssigneeModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._assignee_to_entity(model) if model else None

    async def add_assignee(self, assignee: MilestoneAssignee) -> MilestoneAssignee:
        """Assign a user to a milestone."""
        model = MilestoneAssigneeModel(
            milestone_id=assignee.milestone_id,
            user_id=assignee.user_id,
            assigned_at=assignee.assigned_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._assignee_to_entity(model)

    async def remove_assignee(self, milestone_id: UUID, user_id: UUID) -> bool:
        """Unassign a user."""
        result = await self._session.execute(
            delete(MilestoneAssigneeModel).where(
                MilestoneAssigneeModel.milestone_id == milestone_id,
                MilestoneAssigneeModel.user_id == user_id,
            )
        )
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    async def unassign_from_project(self, project_id: UUID, user_id: UUID) -> int:
        """Drop every assignment ``user_id`` holds on the project's milestones."""
        milestone_ids = select(MilestoneModel.id).where(MilestoneModel.project_id == project_id)
        result = await self._session.execute(
            delete(MilestoneAssigneeModel).where(
                MilestoneAssigneeModel.user_id == user_id,
                MilestoneAssigneeModel.milestone_id.in_(milestone_ids),
            )
        )
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def count_by_status(self, project_id: UUID) -> dict[MilestoneStatus, int]:
        """Count a project's milestones per status."""
        stmt = (
            select(MilestoneModel.status, func.count())
            .where(MilestoneModel.project_id == project_id)
            .group_by(MilestoneModel.status)
        )
        result = await self._session.execute(stmt)
        return {MilestoneStatus(status): count for status, count in result.all()}

    @staticmethod
    def _live() -> Select[tuple[MilestoneModel]]:
        """Milestones whose project's team has not been soft-deleted."""
        return (
            select(MilestoneModel)
            .join(ProjectModel, ProjectModel.id == MilestoneModel.project_id)
            .join(TeamModel, TeamModel.id == ProjectModel.team_id)
            .where(TeamModel.deleted_at.is_(None))
        )

    async def _load_assignees(self, milestone_ids: list[UUID]) -> dict[UUID, list[User]]:
        if not milestone_ids:
            return {}
        stmt = (
            select(MilestoneAssigneeModel.milestone_id, UserModel)
            .join(UserModel, UserModel.id == MilestoneAssigneeModel.user_id)
            .where(MilestoneAssigneeModel.milestone_id.in_(milestone_ids))
            .order_by(MilestoneAssigneeModel.assigned_at)
        )
        result = await self._session.execute(stmt)
        grouped: dict[UUID, list[User]] = defaultdict(list)
        for milestone_id, user in result.all():
            grouped[milestone_id].append(user_to_entity(user))
        return grouped

    def _to_entity(self, model: MilestoneModel, assignees: list[User]) -> Milestone:
        """Convert ORM model to domain entity."""
        return Milestone(
            id=model.id,
            slug=model.slug,
            name=model.name,
            description=model.description,
            project_id=model.project_id,
            status=MilestoneStatus(model.status),
            due_at=model.due_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
            assignees=list(assignees),
        )

    def _assignee_to_entity(self, model: MilestoneAssigneeModel) -> MilestoneAssignee:
        return MilestoneAssignee(
            milestone_id=model.milestone_id,
            user_id=model.user_id,
            assigned_at=model.assigned_at,
        )
