"""Bearer-token dependencies for FastAPI routes."""

from typing import Annotated

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import ErrorCode, UnauthorisedError
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import IAuthProvider, TokenUser

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /auth/login")

BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]

_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Return the process-wide session token provider."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def _resolve(
    credentials: HTTPAuthorizationCredentials | None, auth_provider: IAuthProvider
) -> TokenUser | None:
    if credentials is None:
        return None
    user = await auth_provider.validate_token(credentials.credentials)
    if user is not None:
        structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


async def get_current_user(
    credentials: BearerCredentials,
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """Resolve the caller from the bearer token.

    Raises:
        UnauthorisedError: no token, or a token that is invalid or expired.
    """
    if credentials is None:
        raise UnauthorisedError("Authorization header required", ErrorCode.UNAUTHORIZED)

    user = await _resolve(credentials, auth_provider)
    if user is None:
        raise UnauthorisedError("Invalid or expired token", ErrorCode.INVALID_TOKEN)
    return user


async def get_optional_user(
    credentials: BearerCredentials,
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser | None:
    """Like ``get_current_user`` but anonymous callers (and bad tokens) yield None."""
    return await _resolve(credentials, auth_provider)


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
OptionalUser = Annotated[TokenUser | None, Depends(get_optional_user)]
