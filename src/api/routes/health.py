"""Liveness and readiness probes."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from infrastructure.database.session import get_async_session

logger = structlog.get_logger()

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None


def _health(state: str, database: str | None = None) -> HealthResponse:
    return HealthResponse(
        status=state,
        version=settings.app_version,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=database,
    )


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """Answers without touching the database."""
    return _health("healthy")


@router.get(
    "/health/ready",
    response_model=HealthResponse,
    summary="Readiness probe",
    responses={503: {"description": "Database unreachable"}},
)
async def readiness_check(db: AsyncSession = Depends(get_async_session)) -> JSONResponse:
    """Checks that the database answers a trivial query. Returns 503 otherwise."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("readiness_check_failed", error=str(e))
        body = _health("degraded", database="unreachable")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())

    return JSONResponse(content=_health("healthy", database="reachable").model_dump())
