"""Integration tests for signup, login and the current-user endpoint."""

import pytest
from httpx import AsyncClient

from tests.integration.api.conftest import SignUp


class TestSignup:
    @pytest.mark.asyncio
    async def test_signup_creates_account_and_personal_team(
        self, api_client: AsyncClient, signup: SignUp
    ):
        user = await signup("Ada@Example.com", first_name="Ada", last_name="Lovelace")

        assert user.email == "ada@example.com"

        teams = await api_client.get("/api/v1/teams", headers=user.headers)
        assert teams.status_code == 200
        data = teams.json()["data"]
        assert len(data) == 1
        assert data[0]["type"] == "personal"
        assert data[0]["name"] == "Personal"
        assert data[0]["role"] == "owner"
        assert data[0]["slug"].startswith("ada-lovelace-")

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, api_client: AsyncClient, signup: SignUp):
        await signup("dup@example.com")

        response = await api_client.post(
            "/api/v1/auth/signup",
            json={"email": "DUP@example.com", "password": "another-pass", "first_name": "X"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "EMAIL_TAKEN"
        assert response.json()["kind"] == "conflict"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, api_client: AsyncClient):
        response = await api_client.post(
            "/api/v1/auth/signup",
            json={"email": "a@example.com", "password": "short", "first_name": "A"},
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "bad_request"


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_issues_working_token(self, api_client: AsyncClient, signup: SignUp):
        await signup("bob@example.com", first_name="Bob", password="correct-horse")

        response = await api_client.post(
            "/api/v1/auth/login", json={"email": "bob@example.com", "password": "correct-horse"}
        )

        assert response.status_code == 200
        token = response.json()["access_token"]
        me = await api_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["first_name"] == "Bob"

    @pytest.mark.asyncio
    async def test_wrong_password(self, api_client: AsyncClient, signup: SignUp):
        await signup("carol@example.com", password="correct-horse")

        response = await api_client.post(
            "/api/v1/auth/login", json={"email": "carol@example.com", "password": "wrong-horse"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_unknown_email(self, api_client: AsyncClient):
        response = await api_client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever1"}
        )

        assert response.status_code == 401


class TestMe:
    @pytest.mark.asyncio
    async def test_requires_token(self, api_client: AsyncClient):
        response = await api_client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["kind"] == "unauthorised"
