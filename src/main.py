"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_invitation_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

setup_logging()

API_DESCRIPTION = """\
## Multi-tenant Issue Tracker

Teams own projects; projects own milestones. Access is granted through team
and project memberships and signed invitations.

### Authentication
All endpoints except `/health`, signup, login and invitation preview require
a bearer token in the Authorization header:
```
Authorization: Bearer <your_token>
```
"""

OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness and readiness probes"},
    {"name": "auth", "description": "Signup, login and current user"},
    {"name": "teams", "description": "Teams and team membership"},
    {"name": "projects", "description": "Projects and project membership"},
    {"name": "invitations", "description": "Team and project invitations"},
    {"name": "milestones", "description": "Milestone workflow"},
]


async def expire_invitations_periodically(interval_seconds: int) -> None:
    """Mark pending invitations past their expiry as expired.

    Acceptance checks ``expires_at`` itself; the sweep only keeps the stored
    status accurate for listings.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            expired = await get_invitation_service().expire_stale()
        except Exception:
            logger.exception("invitation_expiry_failed")
        else:
            logger.info("invitation_expiry_swept", expired=expired)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("app_starting", environment=settings.app_env, version=settings.app_version)
    sweeper = asyncio.create_task(
        expire_invitations_periodically(settings.invitation_expiry_interval_seconds)
    )
    yield
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    logger.info("app_stopped")


def _add_middleware(app: FastAPI) -> None:
    # Starlette runs middleware LIFO: the last one added is outermost.
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=API_DESCRIPTION,
        version=settings.app_version,
        debug=settings.debug,
        openapi_tags=OPENAPI_TAGS,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    setup_exception_handlers(app)
    _add_middleware(app)

    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
