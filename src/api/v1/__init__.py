"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.auth import router as auth_router
from api.v1.routes.invitations import (
    invitations_router,
    project_invitations_router,
    team_invitations_router,
)
from api.v1.routes.milestones import project_milestones_router
from api.v1.routes.milestones import router as milestones_router
from api.v1.routes.projects import router as projects_router
from api.v1.routes.projects import team_projects_router
from api.v1.routes.teams import router as teams_router
from api.v1.schemas.common import ErrorResponse

router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        422: {"model": ErrorResponse, "description": "Request validation failed"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    }
)
router.include_router(auth_router)
router.include_router(teams_router)
router.include_router(team_projects_router)
router.include_router(team_invitations_router)
router.include_router(projects_router)
router.include_router(project_invitations_router)
router.include_router(project_milestones_router)
router.include_router(milestones_router)
router.include_router(invitations_router)
