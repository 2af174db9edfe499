"""Milestone service layer with business logic."""

from collections.abc import Callable, Iterable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    InvalidAssigneesError,
    MilestoneNotFoundError,
    ProjectNotFoundError,
)
from domain.entities.milestone import (
    Milestone,
    MilestoneAssignee,
    MilestoneProgress,
    MilestoneStatus,
)
from domain.policies.permissions import Action
from domain.policies.roles import ResourceKind
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import as_uuid, require_project_permission
from domain.services.slugs import create_with_unique_slug

logger = structlog.get_logger()


class MilestoneService:
    """Service layer for the milestone workflow.

    Milestones have no memberships of their own; every check runs against
    the caller's role on the milestone's project.
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create_milestone(
        self,
        project_id: UUID,
        acting_user_id: UUID,
        name: str,
        description: str | None = None,
        status: MilestoneStatus = MilestoneStatus.BACKLOG,
        assignee_ids: Iterable[UUID] = (),
        due_at: datetime | None = None,
    ) -> Milestone:
        """Create a milestone with its assignees. Requires ADMIN or OWNER.

        Raises:
            ProjectNotFoundError: project does not exist.
            ForbiddenError: caller may not manage milestones.
            InvalidAssigneesError: an assignee is not a project member.
        """
        assignees = list(dict.fromkeys(assignee_ids))

        async def _create(slug: str) -> Milestone:
            async with self._uow_factory() as uow:
                await self._get_project(uow, project_id)
                await self._require(uow, project_id, acting_user_id, Action.MANAGE)
                await self._validate_assignees(uow, project_id, assignees)

                milestone = Milestone(
                    name=name,
                    project_id=project_id,
                    slug=slug,
                    description=description,
                    status=status,
                    due_at=due_at,
                )
                created = await uow.milestones.create(milestone)
                for user_id in assignees:
                    await uow.milestones.add_assignee(
                        MilestoneAssignee(milestone_id=created.id, user_id=user_id)
                    )

                loaded = await uow.milestones.get(created.id)
                await uow.commit()
                return loaded or created

        milestone = await create_with_unique_slug(name, _create, fallback="milestone")
        logger.info(
            "milestone_created",
            milestone_id=str(milestone.id),
            project_id=str(project_id),
            status=milestone.status.value,
            assignees=len(assignees),
        )
        return milestone

    async def change_status(
        self,
        milestone_id: UUID,
        new_status: MilestoneStatus,
        acting_user_id: UUID,
    ) -> Milestone:
        """Move a milestone to any status. Any project member may do this."""
        async with self._uow_factory() as uow:
            milestone = await self._get(uow, milestone_id)
            await self._require(
                uow, milestone.project_id, acting_user_id, Action.UPDATE, field="status"
            )

            old_status = milestone.status
            if old_status == new_status:
                return milestone

            milestone.status = new_status
            milestone.updated_at = datetime.utcnow()
            updated = await uow.milestones.update(milestone)
            await uow.commit()

        logger.info(
            "milestone_status_changed",
            milestone_id=str(milestone_id),
            old_status=old_status.value,
            new_status=new_status.value,
            acting_user_id=str(acting_user_id),
        )
        return updated  # type: ignore[no-any-return]

    async def edit_milestone(
        self,
        milestone_id: UUID,
        acting_user_id: UUID,
        name: str | None = None,
        description: str | None = None,
        status: MilestoneStatus | None = None,
        due_at: datetime | None = None,
        clear_due_at: bool = False,
        assignee_ids: Iterable[UUID] | None = None,
    ) -> Milestone:
        """Edit a milestone. Requires ADMIN or OWNER.

        ``assignee_ids`` replaces the assignee list; additions and removals
        are applied in the same transaction.
        """
        async with self._uow_factory() as uow:
            milestone = await self._get(uow, milestone_id)
            await self._require(uow, milestone.project_id, acting_user_id, Action.MANAGE)

            if assignee_ids is not None:
                desired = list(dict.fromkeys(assignee_ids))
                await self._validate_assignees(uow, milestone.project_id, desired)
                current = set(milestone.assignee_ids)

                for user_id in desired:
                    if user_id not in current:
                        await uow.milestones.add_assignee(
                            MilestoneAssignee(milestone_id=milestone_id, user_id=user_id)
                        )
                for user_id in current - set(desired):
                    await uow.milestones.remove_assignee(milestone_id, user_id)

            if name is not None:
                milestone.name = name
            if description is not None:
                milestone.description = description
            if status is not None:
                milestone.status = status
            if clear_due_at:
                milestone.due_at = None
            elif due_at is not None:
                milestone.due_at = due_at

            milestone.updated_at = datetime.utcnow()
            await uow.milestones.update(milestone)
            loaded = await uow.milestones.get(milestone_id)
            await uow.commit()

        logger.info(
            "milestone_edited",
            milestone_id=str(milestone_id),
            acting_user_id=str(acting_user_id),
        )
        return loaded or milestone

    async def add_assignee(self, milestone_id: UUID, user_id: UUID, acting_user_id: UUID) -> bool:
        """Assign a project member. Returns False if already assigned."""
        async with self._uow_factory() as uow:
            milestone = await self._get(uow, milestone_id)
            await self._require(uow, milestone.project_id, acting_user_id, Action.MANAGE)
            await self._validate_assignees(uow, milestone.project_id, [user_id])

            if await uow.milestones.get_assignee(milestone_id, user_id):
                return False

            await uow.milestones.add_assignee(
                MilestoneAssignee(milestone_id=milestone_id, user_id=user_id)
            )
            await uow.commit()
            return True

    async def remove_assignee(
        self, milestone_id: UUID, user_id: UUID, acting_user_id: UUID
    ) -> bool:
        """Unassign a project member. Returns False if they were not assigned."""
        async with self._uow_factory() as uow:
            milestone = await self._get(uow, milestone_id)
            await self._require(uow, milestone.project_id, acting_user_id, Action.MANAGE)
            await self._validate_assignees(uow, milestone.project_id, [user_id])

            removed = await uow.milestones.remove_assignee(milestone_id, user_id)
            if removed:
                await uow.commit()
            return removed  # type: ignore[no-any-return]

    async def delete_milestone(self, milestone_id: UUID, acting_user_id: UUID) -> bool:
        """Delete a milestone. ADMIN and OWNER may delete."""
        async with self._uow_factory() as uow:
            milestone = await self._get(uow, milestone_id)
            await self._require(uow, milestone.project_id, acting_user_id, Action.MANAGE)

            deleted = await uow.milestones.delete(milestone_id)
            await uow.commit()

        logger.info(
            "milestone_deleted",
            milestone_id=str(milestone_id),
            acting_user_id=str(acting_user_id),
        )
        return deleted  # type: ignore[no-any-return]

    async def get_milestone(self, id_or_slug: UUID | str, user_id: UUID) -> Milestone:
        async with self._uow_factory() as uow:
            milestone_id = as_uuid(id_or_slug)
            if milestone_id is not None:
                milestone = await uow.milestones.get(milestone_id)
            else:
                milestone = await uow.milestones.get_by_slug(str(id_or_slug))
            if not milestone:
                raise MilestoneNotFoundError(str(id_or_slug))

            await self._require(uow, milestone.project_id, user_id, Action.READ)
            return milestone

    async def list_milestones(
        self,
        project_id: UUID,
        user_id: UUID,
        status: MilestoneStatus | None = None,
    ) -> list[Milestone]:
        async with self._uow_factory() as uow:
            await self._get_project(uow, project_id)
            await self._require(uow, project_id, user_id, Action.READ)
            return await uow.milestones.list_for_project(  # type: ignore[no-any-return]
                project_id, status=status
            )

    async def get_progress(self, project_id: UUID, user_id: UUID) -> MilestoneProgress:
        """Per-status counts for a project, cancelled milestones left out."""
        async with self._uow_factory() as uow:
            await self._get_project(uow, project_id)
            await self._require(uow, project_id, user_id, Action.READ)
            counts = await uow.milestones.count_by_status(project_id)

        return MilestoneProgress.from_counts(counts)

    # --- Internal helpers ---

    @staticmethod
    async def _require(
        uow: IUnitOfWork,
        project_id: UUID,
        user_id: UUID,
        action: Action,
        field: str | None = None,
    ) -> None:
        await require_project_permission(
            uow, project_id, user_id, action, resource=ResourceKind.MILESTONE, field=field
        )

    @staticmethod
    async def _validate_assignees(
        uow: IUnitOfWork, project_id: UUID, user_ids: list[UUID]
    ) -> None:
        if not user_ids:
            return
        members = await uow.projects.get_member_ids(project_id, user_ids)
        invalid = [str(user_id) for user_id in user_ids if user_id not in members]
        if invalid:
            raise InvalidAssigneesError(invalid)

    @staticmethod
    async def _get(uow: IUnitOfWork, milestone_id: UUID) -> Milestone:
        milestone = await uow.milestones.get(milestone_id)
        if not milestone:
            raise MilestoneNotFoundError(str(milestone_id))
        return milestone

    @staticmethod
    async def _get_project(uow: IUnitOfWork, project_id: UUID) -> None:
        if not await uow.projects.get(project_id):
            raise ProjectNotFoundError(str(project_id))
