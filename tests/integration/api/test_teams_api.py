"""Integration tests for Teams API."""

import pytest
from httpx import AsyncClient

from tests.integration.api.conftest import SignUp, create_team, invite_and_join


class TestTeams:
    @pytest.mark.asyncio
    async def test_create_and_get_by_id_or_slug(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")

        team = await create_team(api_client, owner, "Acme Corp")

        assert team["type"] == "team"
        assert team["role"] == "owner"
        assert team["slug"].startswith("acme-corp-")

        by_id = await api_client.get(f"/api/v1/teams/{team['id']}", headers=owner.headers)
        by_slug = await api_client.get(f"/api/v1/teams/{team['slug']}", headers=owner.headers)
        assert by_id.status_code == by_slug.status_code == 200
        assert by_slug.json()["data"]["id"] == team["id"]

    @pytest.mark.asyncio
    async def test_list_includes_personal_and_created(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        await create_team(api_client, owner)

        response = await api_client.get("/api/v1/teams", headers=owner.headers)

        assert response.json()["meta"]["total"] == 2
        assert {t["type"] for t in response.json()["data"]} == {"personal", "team"}

    @pytest.mark.asyncio
    async def test_outsider_cannot_read(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        outsider = await signup("outsider@example.com")
        team = await create_team(api_client, owner)

        response = await api_client.get(f"/api/v1/teams/{team['id']}", headers=outsider.headers)

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    async def test_unknown_team(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")

        response = await api_client.get("/api/v1/teams/no-such-team", headers=owner.headers)

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner)

        updated = await api_client.patch(
            f"/api/v1/teams/{team['id']}", json={"name": "Renamed"}, headers=owner.headers
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["name"] == "Renamed"
        assert updated.json()["data"]["slug"] == team["slug"]

        deleted = await api_client.delete(f"/api/v1/teams/{team['id']}", headers=owner.headers)
        assert deleted.status_code == 204

        gone = await api_client.get(f"/api/v1/teams/{team['id']}", headers=owner.headers)
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_personal_team_cannot_be_deleted(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        teams = await api_client.get("/api/v1/teams", headers=owner.headers)
        personal_id = teams.json()["data"][0]["id"]

        response = await api_client.delete(f"/api/v1/teams/{personal_id}", headers=owner.headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "PERSONAL_TEAM"


class TestTeamMembers:
    @pytest.mark.asyncio
    async def test_member_lifecycle(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com", first_name="Olive")
        member = await signup("member@example.com", first_name="Mark")
        team = await create_team(api_client, owner)
        await invite_and_join(api_client, owner, member, "teams", team["id"])

        listed = await api_client.get(f"/api/v1/teams/{team['id']}/members", headers=owner.headers)
        roles = {m["email"]: m["role"] for m in listed.json()["data"]}
        assert roles == {"owner@example.com": "owner", "member@example.com": "member"}

        filtered = await api_client.get(
            f"/api/v1/teams/{team['id']}/members", params={"q": "mark"}, headers=owner.headers
        )
        assert [m["email"] for m in filtered.json()["data"]] == ["member@example.com"]

        forbidden = await api_client.put(
            f"/api/v1/teams/{team['id']}/members/{owner.id}",
            json={"role": "member"},
            headers=member.headers,
        )
        assert forbidden.status_code == 403

        promoted = await api_client.put(
            f"/api/v1/teams/{team['id']}/members/{member.id}",
            json={"role": "owner"},
            headers=owner.headers,
        )
        assert promoted.status_code == 200
        assert promoted.json()["role"] == "owner"

        removed = await api_client.delete(
            f"/api/v1/teams/{team['id']}/members/{owner.id}", headers=member.headers
        )
        assert removed.status_code == 204

    @pytest.mark.asyncio
    async def test_admin_is_not_a_team_role(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        member = await signup("member@example.com")
        team = await create_team(api_client, owner)
        await invite_and_join(api_client, owner, member, "teams", team["id"])

        response = await api_client.put(
            f"/api/v1/teams/{team['id']}/members/{member.id}",
            json={"role": "admin"},
            headers=owner.headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ROLE"

    @pytest.mark.asyncio
    async def test_last_owner_is_protected(self, api_client: AsyncClient, signup: SignUp):
        owner = await signup("owner@example.com")
        team = await create_team(api_client, owner)

        demote = await api_client.put(
            f"/api/v1/teams/{team['id']}/members/{owner.id}",
            json={"role": "member"},
            headers=owner.headers,
        )
        remove = await api_client.delete(
            f"/api/v1/teams/{team['id']}/members/{owner.id}", headers=owner.headers
        )

        assert demote.status_code == remove.status_code == 409
        assert demote.json()["error_code"] == "LAST_OWNER"
