"""Request logging middleware."""

import re
import time
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

# Invitation tokens travel in the preview path; they grant access and must not be logged.
_TOKEN_IN_PATH = re.compile(r"(/invitations/preview/)[^/]+")


def redact_path(path: str) -> str:
    return _TOKEN_IN_PATH.sub(r"\1[redacted]", path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its outcome and timing."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=getattr(request.state, "request_id", "unknown"),
            method=request.method,
            path=redact_path(request.url.path),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        if response.status_code >= 500:
            logger.error("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        elif response.status_code >= 400:
            logger.warning(
                "request_completed", status_code=response.status_code, duration_ms=duration_ms
            )
        else:
            logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        return response
