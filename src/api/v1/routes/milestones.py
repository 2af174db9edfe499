"""Milestone API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_milestone_service
from api.v1.schemas.common import UserSummary
from api.v1.schemas.milestone import (
    AssigneeChangeResponse,
    MilestoneCreate,
    MilestoneDetailResponse,
    MilestoneListResponse,
    MilestoneResponse,
    MilestoneUpdate,
    ProgressResponse,
    StatusChangeRequest,
)
from core.rate_limit import limiter
from domain.entities.milestone import Milestone, MilestoneStatus
from domain.services.milestone_service import MilestoneService

router = APIRouter(prefix="/milestones", tags=["milestones"])

project_milestones_router = APIRouter(prefix="/projects/{project_id}", tags=["milestones"])


def _milestone_response(milestone: Milestone) -> MilestoneResponse:
    next_status = milestone.status.next()
    previous_status = milestone.status.previous()
    return MilestoneResponse(
        id=milestone.id,
        slug=milestone.slug,
        name=milestone.name,
        description=milestone.description,
        project_id=milestone.project_id,
        status=milestone.status.value,
        due_at=milestone.due_at,
        due_status=milestone.due_status().value,
        next_status=next_status.value if next_status else None,
        previous_status=previous_status.value if previous_status else None,
        assignees=[
            UserSummary(
                id=u.id, email=u.email, first_name=u.first_name, last_name=u.last_name
            )
            for u in milestone.assignees
        ],
        created_at=milestone.created_at,
        updated_at=milestone.updated_at,
    )


@project_milestones_router.post(
    "/milestones",
    response_model=MilestoneDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a milestone",
    responses={
        400: {"description": "An assignee is not a project member"},
        403: {"description": "Admin or owner only"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def create_milestone(
    request: Request,
    project_id: UUID,
    body: MilestoneCreate,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneDetailResponse:
    milestone = await service.create_milestone(
        project_id=project_id,
        acting_user_id=user.id,
        name=body.name,
        description=body.description,
        status=body.status,
        assignee_ids=body.assignee_ids,
        due_at=body.due_at,
    )
    return MilestoneDetailResponse(data=_milestone_response(milestone))


@project_milestones_router.get(
    "/milestones",
    response_model=MilestoneListResponse,
    summary="List a project's milestones",
    responses={403: {"description": "Not a project member"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_milestones(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    status_filter: Optional[MilestoneStatus] = Query(None, alias="status"),
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneListResponse:
    milestones = await service.list_milestones(project_id, user.id, status=status_filter)
    data = [_milestone_response(m) for m in milestones]
    return MilestoneListResponse(data=data, meta={"total": len(data)})


@project_milestones_router.get(
    "/progress",
    response_model=ProgressResponse,
    summary="Milestone progress",
    responses={403: {"description": "Not a project member"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_progress(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> ProgressResponse:
    progress = await service.get_progress(project_id, user.id)
    return ProgressResponse(
        counts={s.value: n for s, n in progress.counts.items()},
        total=progress.total,
        done_percentage=progress.done_percentage,
    )


@router.get(
    "/{milestone_ref}",
    response_model=MilestoneDetailResponse,
    summary="Get milestone by ID or slug",
    responses={
        403: {"description": "Not a project member"},
        404: {"description": "Milestone not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_milestone(
    request: Request,
    milestone_ref: str,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneDetailResponse:
    milestone = await service.get_milestone(milestone_ref, user.id)
    return MilestoneDetailResponse(data=_milestone_response(milestone))


@router.patch(
    "/{milestone_id}",
    response_model=MilestoneDetailResponse,
    summary="Edit a milestone",
    responses={
        400: {"description": "An assignee is not a project member"},
        403: {"description": "Admin or owner only"},
        404: {"description": "Milestone not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def edit_milestone(
    request: Request,
    milestone_id: UUID,
    body: MilestoneUpdate,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneDetailResponse:
    milestone = await service.edit_milestone(
        milestone_id,
        user.id,
        name=body.name,
        description=body.description,
        status=body.status,
        due_at=body.due_at,
        clear_due_at=body.clear_due_at,
        assignee_ids=body.assignee_ids,
    )
    return MilestoneDetailResponse(data=_milestone_response(milestone))


@router.put(
    "/{milestone_id}/status",
    response_model=MilestoneDetailResponse,
    summary="Change milestone status",
    responses={
        403: {"description": "Not a project member"},
        404: {"description": "Milestone not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def change_status(
    request: Request,
    milestone_id: UUID,
    body: StatusChangeRequest,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneDetailResponse:
    """Move a milestone to any status. Any project member may do this."""
    milestone = await service.change_status(milestone_id, body.status, user.id)
    return MilestoneDetailResponse(data=_milestone_response(milestone))


@router.put(
    "/{milestone_id}/assignees/{user_id}",
    response_model=AssigneeChangeResponse,
    summary="Assign a project member",
    responses={
        400: {"description": "User is not a project member"},
        403: {"description": "Admin or owner only"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def add_assignee(
    request: Request,
    milestone_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> AssigneeChangeResponse:
    changed = await service.add_assignee(milestone_id, user_id, user.id)
    return AssigneeChangeResponse(changed=changed)


@router.delete(
    "/{milestone_id}/assignees/{user_id}",
    response_model=AssigneeChangeResponse,
    summary="Unassign a project member",
    responses={
        400: {"description": "User is not a project member"},
        403: {"description": "Admin or owner only"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def remove_assignee(
    request: Request,
    milestone_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> AssigneeChangeResponse:
    changed = await service.remove_assignee(milestone_id, user_id, user.id)
    return AssigneeChangeResponse(changed=changed)


@router.delete(
    "/{milestone_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a milestone",
    responses={
        403: {"description": "Admin or owner only"},
        404: {"description": "Milestone not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_milestone(
    request: Request,
    milestone_id: UUID,
    user: CurrentUser,
    service: MilestoneService = Depends(get_milestone_service),
) -> None:
    await service.delete_milestone(milestone_id, user.id)
    return None
