"""Invitation API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser, OptionalUser
from api.v1.dependencies import get_event_dispatcher, get_invitation_service
from api.v1.schemas.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationCreatedResponse,
    InvitationListResponse,
    InvitationPreviewResponse,
    InvitationResponse,
)
from core.rate_limit import limiter
from domain.entities.invitation import Invitation, ResourceType
from domain.services.invitation_service import InvitationService
from infrastructure.notifications.dispatcher import EventDispatcher
from infrastructure.notifications.mailer import invite_link

# Resource-scoped invitation routes
team_invitations_router = APIRouter(
    prefix="/teams/{team_id}/invitations",
    tags=["invitations"],
)
project_invitations_router = APIRouter(
    prefix="/projects/{project_id}/invitations",
    tags=["invitations"],
)

# Token and user-scoped invitation routes (preview, accept, pending, revoke)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)

_CREATE_RESPONSES = {
    201: {"description": "Invitation created"},
    400: {"description": "Personal team or invalid ttl"},
    403: {"description": "Insufficient permissions"},
    404: {"description": "Resource not found"},
    409: {"description": "Duplicate invitation or already a member"},
}


def _invitation_response(inv: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=inv.id,
        resource_type=inv.resource_type.value,
        resource_id=inv.resource_id,
        email=inv.email,
        status=inv.status.value,
        invited_by=inv.invited_by,
        created_at=inv.created_at,
        expires_at=inv.expires_at,
        consumed_at=inv.consumed_at,
        consumed_by=inv.consumed_by,
    )


async def _create(
    resource_type: ResourceType,
    resource_id: UUID,
    body: CreateInvitationRequest,
    user_id: UUID,
    service: InvitationService,
    dispatcher: EventDispatcher,
    background_tasks: BackgroundTasks,
) -> InvitationCreatedResponse:
    result = await service.create_invitation(
        resource_type=resource_type,
        resource_id=resource_id,
        invitee_email=body.email,
        inviter_user_id=user_id,
        ttl_days=body.ttl_days,
    )
    background_tasks.add_task(dispatcher.dispatch, result.events)
    return InvitationCreatedResponse(
        data=_invitation_response(result.invitation),
        token=result.token,
        link=invite_link(result.token),
    )


@team_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone to a team",
    responses=_CREATE_RESPONSES,
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_team_invitation(
    request: Request,
    team_id: UUID,
    body: CreateInvitationRequest,
    user: CurrentUser,
    background_tasks: BackgroundTasks,
    service: InvitationService = Depends(get_invitation_service),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> InvitationCreatedResponse:
    """Create a team invitation. Requires OWNER."""
    return await _create(
        ResourceType.TEAM, team_id, body, user.id, service, dispatcher, background_tasks
    )


@team_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List pending team invitations",
    responses={403: {"description": "Not a member"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_team_invitations(
    request: Request,
    team_id: UUID,
    user: CurrentUser,
    q: Optional[str] = Query(None, description="Filter by e-mail"),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    invitations = await service.list_invitations(ResourceType.TEAM, team_id, user.id, query=q)
    data = [_invitation_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@project_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone to a project",
    responses=_CREATE_RESPONSES,
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_project_invitation(
    request: Request,
    project_id: UUID,
    body: CreateInvitationRequest,
    user: CurrentUser,
    background_tasks: BackgroundTasks,
    service: InvitationService = Depends(get_invitation_service),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> InvitationCreatedResponse:
    """Create a project invitation. Requires ADMIN or OWNER."""
    return await _create(
        ResourceType.PROJECT, project_id, body, user.id, service, dispatcher, background_tasks
    )


@project_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List pending project invitations",
    responses={403: {"description": "Not a member"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_project_invitations(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    q: Optional[str] = Query(None, description="Filter by e-mail"),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    invitations = await service.list_invitations(
        ResourceType.PROJECT, project_id, user.id, query=q
    )
    data = [_invitation_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


# --- Token and user-scoped routes ---


@invitations_router.get(
    "/pending",
    response_model=InvitationListResponse,
    summary="Get pending invitations",
    responses={200: {"description": "Pending invitations for the current user's e-mail"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_pending_invitations(
    request: Request,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    invitations = await service.get_pending_for_email(user.email)
    data = [_invitation_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@invitations_router.get(
    "/preview/{token}",
    response_model=InvitationPreviewResponse,
    summary="Preview an invitation",
    responses={
        400: {"description": "Token malformed, tampered or expired"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def preview_invitation(
    request: Request,
    token: str,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationPreviewResponse:
    """Describe an invitation for its landing page. No authentication needed."""
    preview = await service.preview_invitation(token)
    return InvitationPreviewResponse(
        resource_type=preview.claims.resource_type.value,
        resource_id=preview.claims.resource_id,
        resource_name=preview.resource_name,
        team_name=preview.team_name,
        email=preview.claims.email,
        status=preview.status.value,
        inviter_name=preview.inviter_name,
        has_account=preview.has_account,
        expires_at=preview.claims.expires_at,
    )


@invitations_router.post(
    "/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, membership granted"},
        400: {"description": "Token invalid, invitation expired or revoked"},
        401: {"description": "Sign in as the invited e-mail"},
        404: {"description": "Invitation not found"},
        409: {"description": "Accepted by another account"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    user: OptionalUser,
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """Accept an invitation using its token.

    Anonymous callers get a 401 whose details carry the invited e-mail so
    the client can route them to signup or login.
    """
    accepted = await service.accept_invitation(body.token, user.id if user else None)
    project = accepted.project
    return AcceptInvitationResponse(
        resource_type=accepted.invitation.resource_type.value,
        team_id=accepted.team.id,
        team_slug=accepted.team.slug,
        team_name=accepted.team.name,
        project_id=project.id if project else None,
        project_slug=project.slug if project else None,
        project_name=project.name if project else None,
        role=accepted.membership.role.name.lower(),
        created=accepted.created,
        message=(
            "Invitation accepted successfully" if accepted.created else "Already a member"
        ),
    )


@invitations_router.post(
    "/{invitation_id}/revoke",
    response_model=InvitationResponse,
    summary="Revoke invitation",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Invitation not found"},
        409: {"description": "Already accepted"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_invitation(
    request: Request,
    invitation_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    """Revoke a pending invitation. Revoking twice is a no-op."""
    invitation = await service.revoke_invitation(invitation_id, user.id)
    return _invitation_response(invitation)
