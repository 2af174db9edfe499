"""Project API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_project_service
from api.v1.routes.teams import member_response
from api.v1.schemas.project import (
    ProjectCreate,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)
from api.v1.schemas.team import MemberListResponse, MemberResponse, UpdateMemberRoleRequest
from core.rate_limit import limiter
from domain.entities.project import Project
from domain.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])

team_projects_router = APIRouter(prefix="/teams/{team_id}/projects", tags=["projects"])


def _project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        slug=project.slug,
        description=project.description,
        team_id=project.team_id,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


@router.post(
    "",
    response_model=ProjectDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    responses={
        201: {"description": "Project created, creator is OWNER"},
        404: {"description": "Team not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_project(
    request: Request,
    body: ProjectCreate,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    """Create a project inside a team. The creator becomes its OWNER."""
    project = await service.create_project(
        name=body.name,
        description=body.description,
        team_id=body.team_id,
        creator_id=user.id,
    )
    return ProjectDetailResponse(data=_project_response(project))


@team_projects_router.get(
    "",
    response_model=ProjectListResponse,
    summary="List a team's projects",
    responses={
        403: {"description": "Not a team member"},
        404: {"description": "Team not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_team_projects(
    request: Request,
    team_id: UUID,
    user: CurrentUser,
    q: Optional[str] = Query(None, description="Filter by project name"),
    limit: int = Query(50, ge=1, le=100),
    page: int = Query(1, ge=1),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    projects = await service.list_team_projects(team_id, user.id, search=q, limit=limit, page=page)
    data = [_project_response(p) for p in projects]
    return ProjectListResponse(data=data, meta={"total": len(data), "page": page, "limit": limit})


@router.get(
    "/{project_ref}",
    response_model=ProjectDetailResponse,
    summary="Get project by ID or slug",
    responses={
        403: {"description": "Not a project member"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_project(
    request: Request,
    project_ref: str,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project = await service.get_project(project_ref, user.id)
    return ProjectDetailResponse(data=_project_response(project))


@router.patch(
    "/{project_id}",
    response_model=ProjectDetailResponse,
    summary="Update project",
    responses={
        403: {"description": "Admin or owner only"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def update_project(
    request: Request,
    project_id: UUID,
    body: ProjectUpdate,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project = await service.update_project(
        project_id, user.id, name=body.name, description=body.description
    )
    return ProjectDetailResponse(data=_project_response(project))


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    responses={
        204: {"description": "Project and its milestones deleted"},
        403: {"description": "Owner only"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_project(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> None:
    await service.delete_project(project_id, user.id)
    return None


# --- Members ---


@router.get(
    "/{project_id}/members",
    response_model=MemberListResponse,
    summary="List project members",
    responses={403: {"description": "Not a project member"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    q: Optional[str] = Query(None, description="Filter by name or e-mail"),
    service: ProjectService = Depends(get_project_service),
) -> MemberListResponse:
    members = await service.list_members(project_id, user.id, query=q)
    data = [member_response(m) for m in members]
    return MemberListResponse(data=data, meta={"total": len(data)})


@router.put(
    "/{project_id}/members/{user_id}",
    response_model=MemberResponse,
    summary="Change a member's role",
    responses={
        400: {"description": "Role not valid for projects"},
        403: {"description": "Insufficient permissions"},
        409: {"description": "Would remove the last owner or admin"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_member_role(
    request: Request,
    project_id: UUID,
    user_id: UUID,
    body: UpdateMemberRoleRequest,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> MemberResponse:
    member = await service.set_member_role(project_id, user_id, body.role, user.id)
    return member_response(member)


@router.delete(
    "/{project_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    responses={
        403: {"description": "Insufficient permissions"},
        409: {"description": "Would remove the last owner or admin"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    project_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: ProjectService = Depends(get_project_service),
) -> None:
    await service.remove_member(project_id, user_id, user.id)
    return None
