"""Team API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_team_service
from api.v1.schemas.team import (
    MemberListResponse,
    MemberResponse,
    TeamCreate,
    TeamDetailResponse,
    TeamListResponse,
    TeamResponse,
    TeamUpdate,
    UpdateMemberRoleRequest,
)
from core.rate_limit import limiter
from domain.entities.project import ProjectMember
from domain.entities.team import Team, TeamMember, TeamType
from domain.policies.roles import Role
from domain.services.team_service import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


def _team_response(team: Team, role: Optional[Role] = None) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        name=team.name,
        slug=team.slug,
        type=team.type.value,
        profile_image=team.profile_image,
        role=role.name.lower() if role is not None else None,
        created_at=team.created_at,
        updated_at=team.updated_at,
    )


def member_response(member: TeamMember | ProjectMember) -> MemberResponse:
    """Shared by the team and project member routes."""
    return MemberResponse(
        user_id=member.user_id,
        email=member.user.email if member.user else "",
        first_name=member.user.first_name if member.user else "",
        last_name=member.user.last_name if member.user else "",
        role=member.role.name.lower(),
        joined_at=member.joined_at,
    )


@router.get(
    "",
    response_model=TeamListResponse,
    summary="List user's teams",
    responses={200: {"description": "Teams the user belongs to, with their role"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_teams(
    request: Request,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> TeamListResponse:
    entries = await service.get_user_teams(user.id)
    data = [_team_response(entry.team, entry.role) for entry in entries]
    return TeamListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=TeamDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a team",
    responses={201: {"description": "Team created, creator is OWNER"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_team(
    request: Request,
    body: TeamCreate,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> TeamDetailResponse:
    """Create a new team. The creator becomes its OWNER."""
    team = await service.create_team(
        name=body.name,
        type=TeamType.TEAM,
        creator_id=user.id,
        profile_image=body.profile_image,
    )
    return TeamDetailResponse(data=_team_response(team, Role.OWNER))


@router.get(
    "/{team_ref}",
    response_model=TeamDetailResponse,
    summary="Get team by ID or slug",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Team not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_team(
    request: Request,
    team_ref: str,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> TeamDetailResponse:
    team = await service.get_team(team_ref, user.id)
    return TeamDetailResponse(data=_team_response(team))


@router.patch(
    "/{team_id}",
    response_model=TeamDetailResponse,
    summary="Update team",
    responses={
        403: {"description": "Owner only"},
        404: {"description": "Team not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def update_team(
    request: Request,
    team_id: UUID,
    body: TeamUpdate,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> TeamDetailResponse:
    team = await service.update_team(
        team_id, user.id, name=body.name, profile_image=body.profile_image
    )
    return TeamDetailResponse(data=_team_response(team))


@router.delete(
    "/{team_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete team",
    responses={
        204: {"description": "Team deleted"},
        400: {"description": "Personal teams cannot be deleted"},
        403: {"description": "Owner only"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_team(
    request: Request,
    team_id: UUID,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> None:
    await service.delete_team(team_id, user.id)
    return None


# --- Members ---


@router.get(
    "/{team_id}/members",
    response_model=MemberListResponse,
    summary="List team members",
    responses={403: {"description": "Not a member"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    team_id: UUID,
    user: CurrentUser,
    q: Optional[str] = Query(None, description="Filter by name or e-mail"),
    service: TeamService = Depends(get_team_service),
) -> MemberListResponse:
    members = await service.list_members(team_id, user.id, query=q)
    data = [member_response(m) for m in members]
    return MemberListResponse(data=data, meta={"total": len(data)})


@router.put(
    "/{team_id}/members/{user_id}",
    response_model=MemberResponse,
    summary="Change a member's role",
    responses={
        400: {"description": "Role not valid for teams"},
        403: {"description": "Owner only"},
        409: {"description": "Would remove the last owner"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_member_role(
    request: Request,
    team_id: UUID,
    user_id: UUID,
    body: UpdateMemberRoleRequest,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> MemberResponse:
    member = await service.set_member_role(team_id, user_id, body.role, user.id)
    return member_response(member)


@router.delete(
    "/{team_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    responses={
        403: {"description": "Owner only"},
        409: {"description": "Would remove the last owner"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    team_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: TeamService = Depends(get_team_service),
) -> None:
    await service.remove_member(team_id, user_id, user.id)
    return None
