"""Unit tests for exception handlers."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from api.exception_handlers import setup_exception_handlers
from core.exceptions import (
    ErrorKind,
    InvitationEmailMismatchError,
    InvitationTokenError,
    LastOwnerError,
    ProjectNotFoundError,
    TokenErrorKind,
    kind_for_status,
)


def _create_test_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


async def _get(app: FastAPI, path: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        return await c.get(path)


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_app_exception_returns_error_code_kind_and_message(self) -> None:
        app = _create_test_app()

        @app.get("/raise-app")
        async def _() -> None:
            raise ProjectNotFoundError("some-id")

        response = await _get(app, "/raise-app")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "PROJECT_NOT_FOUND"
        assert body["kind"] == "not_found"
        assert "some-id" in body["message"]

    @pytest.mark.asyncio
    async def test_conflict_kind(self) -> None:
        app = _create_test_app()

        @app.get("/raise-conflict")
        async def _() -> None:
            raise LastOwnerError("team")

        response = await _get(app, "/raise-conflict")

        assert response.status_code == 409
        assert response.json()["kind"] == "conflict"

    @pytest.mark.asyncio
    async def test_invitation_email_mismatch_carries_email(self) -> None:
        app = _create_test_app()

        @app.get("/raise-mismatch")
        async def _() -> None:
            raise InvitationEmailMismatchError("invitee@example.com")

        response = await _get(app, "/raise-mismatch")

        assert response.status_code == 401
        body = response.json()
        assert body["kind"] == "unauthorised"
        assert body["details"] == {"email": "invitee@example.com"}

    @pytest.mark.asyncio
    async def test_token_error_reason(self) -> None:
        app = _create_test_app()

        @app.get("/raise-token")
        async def _() -> None:
            raise InvitationTokenError(TokenErrorKind.SIGNATURE_INVALID)

        response = await _get(app, "/raise-token")

        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "bad_request"
        assert body["details"] == {"reason": "signature_invalid"}

    @pytest.mark.asyncio
    async def test_http_exception_returns_standard_format(self) -> None:
        from starlette.exceptions import HTTPException

        app = _create_test_app()

        @app.get("/raise-http")
        async def _() -> None:
            raise HTTPException(status_code=403, detail="Forbidden")

        response = await _get(app, "/raise-http")

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "HTTP_ERROR"
        assert body["kind"] == "forbidden"
        assert body["message"] == "Forbidden"

    @pytest.mark.asyncio
    async def test_validation_error_returns_field_details(self) -> None:
        from pydantic import BaseModel, Field

        app = _create_test_app()

        class Body(BaseModel):
            name: str = Field(..., min_length=1)

        @app.post("/validate")
        async def _(body: Body) -> dict[str, bool]:
            return {"ok": True}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.post("/validate", json={"name": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["kind"] == "bad_request"
        assert isinstance(body["details"], list)
        assert len(body["details"]) >= 1

    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self) -> None:
        import json
        from unittest.mock import MagicMock

        app = _create_test_app()

        mock_request = MagicMock()
        mock_request.state.request_id = "test-req-id"

        exc = RuntimeError("Something went wrong")

        handler = None
        for exc_class, h in app.exception_handlers.items():
            if exc_class is Exception:
                handler = h
                break

        assert handler is not None, "Global exception handler not registered"

        response = await handler(mock_request, exc)  # type: ignore[misc]

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["kind"] == "internal"
        assert body["details"]["request_id"] == "test-req-id"

    @pytest.mark.asyncio
    async def test_integrity_error_is_a_conflict(self) -> None:
        from sqlalchemy.exc import IntegrityError

        app = _create_test_app()

        @app.get("/race")
        async def _():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        response = await _get(app, "/race")

        assert response.status_code == 409
        assert response.json()["error_code"] == "DATABASE_ERROR"
        assert response.json()["kind"] == "conflict"

    @pytest.mark.asyncio
    async def test_unknown_route_is_not_found(self) -> None:
        response = await _get(_create_test_app(), "/nowhere")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


class TestKindForStatus:
    @pytest.mark.parametrize(
        "status_code, kind",
        [
            (400, ErrorKind.BAD_REQUEST),
            (401, ErrorKind.UNAUTHORISED),
            (405, ErrorKind.BAD_REQUEST),
            (409, ErrorKind.CONFLICT),
            (429, ErrorKind.RATE_LIMITED),
            (503, ErrorKind.INTERNAL),
        ],
    )
    def test_mapping(self, status_code: int, kind: ErrorKind) -> None:
        assert kind_for_status(status_code) == kind
