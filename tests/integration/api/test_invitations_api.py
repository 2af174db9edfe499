"""Integration tests for the invitation flow."""

import pytest
from httpx import AsyncClient

from tests.integration.api.conftest import SignUp, SignedUpUser, create_project, create_team


async def _invite(
    client: AsyncClient, inviter: SignedUpUser, resource: str, resource_id: str, email: str
) -> dict:
    response = await client.post(
        f"/api/v1/{resource}/{resource_id}/invitations",
        json={"email": email},
        headers=inviter.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()  # type: ignore[no-any-return]


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_create_returns_token_and_link(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner)

        body = await _invite(api_client, owner, "teams", team["id"], "New@Example.com")

        assert body["data"]["email"] == "new@example.com"
        assert body["data"]["status"] == "pending"
        assert body["data"]["resource_type"] == "team"
        assert body["link"].endswith("/" + body["token"])

    @pytest.mark.asyncio
    async def test_duplicate_pending_invite(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner)
        await _invite(api_client, owner, "teams", team["id"], "new@example.com")

        response = await api_client.post(
            f"/api/v1/teams/{team['id']}/invitations",
            json={"email": "new@example.com"},
            headers=owner.headers,
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_INVITATION"

    @pytest.mark.asyncio
    async def test_personal_team_cannot_invite(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        teams = await api_client.get("/api/v1/teams", headers=owner.headers)

        response = await api_client.post(
            f"/api/v1/teams/{teams.json()['data'][0]['id']}/invitations",
            json={"email": "friend@example.com"},
            headers=owner.headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PERSONAL_TEAM"

    @pytest.mark.asyncio
    async def test_list_and_pending(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        invitee = await signup("invitee@example.com")
        team = await create_team(api_client, owner)
        await _invite(api_client, owner, "teams", team["id"], invitee.email)
        await _invite(api_client, owner, "teams", team["id"], "other@example.com")

        listed = await api_client.get(
            f"/api/v1/teams/{team['id']}/invitations",
            params={"q": "other"},
            headers=owner.headers,
        )
        pending = await api_client.get("/api/v1/invitations/pending", headers=invitee.headers)

        assert [i["email"] for i in listed.json()["data"]] == ["other@example.com"]
        assert pending.json()["meta"]["total"] == 1
        assert pending.json()["data"][0]["resource_id"] == team["id"]


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_without_auth(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com", first_name="Olive", last_name="Owner")
        team = await create_team(api_client, owner, "Acme")
        body = await _invite(api_client, owner, "teams", team["id"], "stranger@example.com")

        response = await api_client.get(f"/api/v1/invitations/preview/{body['token']}")

        assert response.status_code == 200
        preview = response.json()
        assert preview["resource_name"] == "Acme"
        assert preview["email"] == "stranger@example.com"
        assert preview["inviter_name"] == "Olive Owner"
        assert preview["has_account"] is False
        assert preview["status"] == "pending"

    @pytest.mark.asyncio
    async def test_tampered_token(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner)
        token = (await _invite(api_client, owner, "teams", team["id"], "x@example.com"))["token"]
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{'A' if signature[0] != 'A' else 'B'}{signature[1:]}"

        response = await api_client.get(f"/api/v1/invitations/preview/{tampered}")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INVITATION_TOKEN"
        assert response.json()["details"] == {"reason": "signature_invalid"}

    @pytest.mark.asyncio
    async def test_garbage_token(self, api_client: AsyncClient):
        response = await api_client.get("/api/v1/invitations/preview/not-a-token")

        assert response.status_code == 400
        assert response.json()["details"] == {"reason": "malformed"}


class TestAcceptInvitation:
    @pytest.mark.asyncio
    async def test_team_invite_flow(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner, "Acme")
        token = (await _invite(api_client, owner, "teams", team["id"], "joiner@example.com"))[
            "token"
        ]

        anonymous = await api_client.post("/api/v1/invitations/accept", json={"token": token})
        assert anonymous.status_code == 401
        assert anonymous.json()["details"] == {"email": "joiner@example.com"}

        wrong_user = await signup("someone-else@example.com")
        mismatch = await api_client.post(
            "/api/v1/invitations/accept", json={"token": token}, headers=wrong_user.headers
        )
        assert mismatch.status_code == 401
        assert mismatch.json()["error_code"] == "INVITATION_EMAIL_MISMATCH"

        joiner = await signup("joiner@example.com")
        accepted = await api_client.post(
            "/api/v1/invitations/accept", json={"token": token}, headers=joiner.headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["created"] is True
        assert accepted.json()["team_id"] == team["id"]
        assert accepted.json()["role"] == "member"

        again = await api_client.post(
            "/api/v1/invitations/accept", json={"token": token}, headers=joiner.headers
        )
        assert again.status_code == 200
        assert again.json()["created"] is False

        teams = await api_client.get("/api/v1/teams", headers=joiner.headers)
        assert team["id"] in {t["id"] for t in teams.json()["data"]}

    @pytest.mark.asyncio
    async def test_project_invite_does_not_join_team(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        guest = await signup("guest@example.com")
        team = await create_team(api_client, owner)
        project = await create_project(api_client, owner, team["id"], "Launch")
        token = (await _invite(api_client, owner, "projects", project["id"], guest.email))["token"]

        accepted = await api_client.post(
            "/api/v1/invitations/accept", json={"token": token}, headers=guest.headers
        )

        assert accepted.status_code == 200
        assert accepted.json()["project_id"] == project["id"]
        assert accepted.json()["project_name"] == "Launch"
        project_view = await api_client.get(
            f"/api/v1/projects/{project['id']}", headers=guest.headers
        )
        team_view = await api_client.get(f"/api/v1/teams/{team['id']}", headers=guest.headers)
        assert project_view.status_code == 200
        assert team_view.status_code == 403


class TestRevokeInvitation:
    @pytest.mark.asyncio
    async def test_revoked_invite_cannot_be_accepted(
        self, api_client: AsyncClient, signup: SignUp
    ):
        owner = await signup("owner@example.com")
        invitee = await signup("invitee@example.com")
        team = await create_team(api_client, owner)
        body = await _invite(api_client, owner, "teams", team["id"], invitee.email)

        revoked = await api_client.post(
            f"/api/v1/invitations/{body['data']['id']}/revoke", headers=owner.headers
        )
        accepted = await api_client.post(
            "/api/v1/invitations/accept", json={"token": body["token"]}, headers=invitee.headers
        )

        assert revoked.status_code == 200
        assert revoked.json()["status"] == "revoked"
        assert accepted.status_code == 400
        assert accepted.json()["error_code"] == "INVITATION_REVOKED"

    @pytest.mark.asyncio
    async def test_invitee_cannot_revoke(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        outsider = await signup("outsider@example.com")
        team = await create_team(api_client, owner)
        body = await _invite(api_client, owner, "teams", team["id"], "x@example.com")

        response = await api_client.post(
            f"/api/v1/invitations/{body['data']['id']}/revoke", headers=outsider.headers
        )

        assert response.status_code == 403
