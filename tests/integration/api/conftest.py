"""Helpers shared by the API integration tests."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import pytest
from httpx import AsyncClient


@dataclass
class SignedUpUser:
    id: str
    email: str
    headers: dict[str, str]


SignUp = Callable[..., Awaitable[SignedUpUser]]


@pytest.fixture
def signup(api_client: AsyncClient) -> SignUp:
    """Register a user through the API and return its id, e-mail and auth headers."""

    async def _signup(
        email: str, first_name: str = "Test", last_name: str = "User", password: str = "s3cret-pass"
    ) -> SignedUpUser:
        response = await api_client.post(
            "/api/v1/auth/signup",
            json={
                "email": email,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return SignedUpUser(
            id=body["user"]["id"],
            email=body["user"]["email"],
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )

    return _signup


async def create_team(client: AsyncClient, owner: SignedUpUser, name: str = "Acme") -> dict[str, Any]:
    response = await client.post("/api/v1/teams", json={"name": name}, headers=owner.headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]  # type: ignore[no-any-return]


async def create_project(
    client: AsyncClient, owner: SignedUpUser, team_id: str, name: str = "Roadmap"
) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/projects",
        json={"name": name, "team_id": team_id},
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]  # type: ignore[no-any-return]


async def invite_and_join(
    client: AsyncClient,
    inviter: SignedUpUser,
    invitee: SignedUpUser,
    resource: str,
    resource_id: str,
) -> dict[str, Any]:
    """Invite ``invitee`` to a team or project and accept on their behalf."""
    created = await client.post(
        f"/api/v1/{resource}/{resource_id}/invitations",
        json={"email": invitee.email},
        headers=inviter.headers,
    )
    assert created.status_code == 201, created.text
    accepted = await client.post(
        "/api/v1/invitations/accept",
        json={"token": created.json()["token"]},
        headers=invitee.headers,
    )
    assert accepted.status_code == 200, accepted.text
    return accepted.json()  # type: ignore[no-any-return]
