"""Signup, login and current-user routes."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser, get_auth_provider
from api.v1.dependencies import get_team_service, get_user_service
from api.v1.schemas.auth import LoginRequest, SignupRequest, TokenResponse, UserResponse
from core.rate_limit import limiter
from domain.entities.user import User
from domain.services.team_service import TeamService
from domain.services.user_service import UserService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import IAuthProvider, TokenUser

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=user.created_at,
    )


def _issue(user: User, auth_provider: IAuthProvider) -> TokenResponse:
    token = auth_provider.create_token(
        TokenUser(id=user.id, email=user.email, display_name=user.full_name or None)
    )
    return TokenResponse(access_token=token, user=_user_response(user))


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses={
        201: {"description": "Account and personal team created"},
        409: {"description": "E-mail already registered"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def signup(
    request: Request,
    body: SignupRequest,
    service: UserService = Depends(get_user_service),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenResponse:
    """Register a user. A PERSONAL team is created alongside the account."""
    user = await service.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return _issue(user, auth_provider)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={
        200: {"description": "Bearer token issued"},
        401: {"description": "Invalid credentials"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def login(
    request: Request,
    body: LoginRequest,
    service: UserService = Depends(get_user_service),
    team_service: TeamService = Depends(get_team_service),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenResponse:
    """Exchange e-mail and password for a bearer token."""
    user = await service.authenticate(body.email, body.password)
    await team_service.ensure_personal_team(user.id, user.first_name, user.last_name)
    return _issue(user, auth_provider)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def me(
    request: Request,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return _user_response(await service.get_user(user.id))
