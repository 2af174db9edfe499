"""Membership lookups and permission guards shared by the services."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError

from core.exceptions import InsufficientPermissionsError, NotAMemberError
from domain.entities.project import ProjectMember
from domain.entities.team import TeamMember
from domain.policies.permissions import Action, can
from domain.policies.roles import ResourceKind
from domain.repositories.unit_of_work import IUnitOfWork


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for unique/primary-key violations, False for NOT NULL, FK and the rest."""
    orig = str(exc.orig).lower() if exc.orig else ""
    return "unique" in orig or "duplicate" in orig


async def require_team_permission(
    uow: IUnitOfWork,
    team_id: UUID,
    user_id: UUID,
    action: Action,
) -> TeamMember:
    """Load the caller's team membership and check ``action``. Raises on failure."""
    member = await uow.teams.get_member(team_id, user_id)
    if not member:
        raise NotAMemberError("team", str(team_id))
    if not can(member.role, action, ResourceKind.TEAM):
        raise InsufficientPermissionsError(action.value, ResourceKind.TEAM.value)
    return member


async def require_project_permission(
    uow: IUnitOfWork,
    project_id: UUID,
    user_id: UUID,
    action: Action,
    resource: ResourceKind = ResourceKind.PROJECT,
    field: str | None = None,
) -> ProjectMember:
    """Load the caller's project membership and check ``action``.

    Milestones carry no roles of their own, so ``resource=MILESTONE`` is
    evaluated against the project membership.
    """
    member = await uow.projects.get_member(project_id, user_id)
    if not member:
        raise NotAMemberError("project", str(project_id))
    if not can(member.role, action, resource, field=field):
        target = f"{resource.value}.{field}" if field else resource.value
        raise InsufficientPermissionsError(action.value, target)
    return member


def as_uuid(value: UUID | str) -> UUID | None:
    """Return ``value`` as a UUID, or None when it is a slug."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None
