"""Unit tests for TeamService."""

from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    InsufficientPermissionsError,
    InvalidRoleError,
    LastOwnerError,
    MemberNotFoundError,
    NotAMemberError,
    PersonalTeamError,
    SlugGenerationError,
    TeamNotFoundError,
)
from domain.entities.team import Team, TeamMember, TeamType, TeamWithRole
from domain.entities.user import User
from domain.policies.roles import Role
from domain.services.team_service import PERSONAL_TEAM_NAME, TeamService
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def service(uow: FakeUnitOfWork) -> TeamService:
    return TeamService(lambda: uow)


@pytest.fixture
def sample_team(team_id: UUID) -> Team:
    return Team(id=team_id, name="Acme", slug="acme-abc123")


def _member(team_id: UUID, user_id: UUID, role: Role) -> TeamMember:
    return TeamMember(team_id=team_id, user_id=user_id, role=role)


def _unique_violation() -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: teams.slug"))


# --- create_team ---


class TestCreateTeam:
    @pytest.mark.asyncio
    async def test_creator_becomes_owner(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.teams.create.side_effect = lambda team: team

        team = await service.create_team("Acme Corp", TeamType.TEAM, user_id)

        assert team.slug.startswith("acme-corp-")
        member = uow.teams.add_member.call_args.args[0]
        assert member.user_id == user_id
        assert member.role == Role.OWNER
        assert member.team_id == team.id
        assert uow.committed

    @pytest.mark.asyncio
    async def test_retries_on_slug_collision(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.teams.create.side_effect = [_unique_violation(), Team(name="Acme", slug="x")]

        team = await service.create_team("Acme", TeamType.TEAM, user_id)

        assert team.slug == "x"
        assert uow.teams.create.call_count == 2
        first, second = (c.args[0].slug for c in uow.teams.create.call_args_list)
        assert first != second

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.teams.create.side_effect = _unique_violation()

        with pytest.raises(SlugGenerationError):
            await service.create_team("Acme", TeamType.TEAM, user_id)

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.teams.create.side_effect = IntegrityError(
            "INSERT", {}, Exception("NOT NULL constraint failed: teams.name")
        )

        with pytest.raises(IntegrityError):
            await service.create_team("Acme", TeamType.TEAM, user_id)
        assert uow.teams.create.call_count == 1


class TestEnsurePersonalTeam:
    @pytest.mark.asyncio
    async def test_returns_existing(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        personal = Team(name=PERSONAL_TEAM_NAME, type=TeamType.PERSONAL, slug="ada-x")
        uow.teams.get_all_for_user.return_value = [
            TeamWithRole(team=Team(name="Acme", slug="acme"), role=Role.MEMBER),
            TeamWithRole(team=personal, role=Role.OWNER),
        ]

        result = await service.ensure_personal_team(user_id, "Ada", "Lovelace")

        assert result is personal
        uow.teams.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_when_missing(
        self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.teams.get_all_for_user.return_value = []
        uow.teams.create.side_effect = lambda team: team

        result = await service.ensure_personal_team(user_id, "Ada", "Lovelace")

        assert result.type == TeamType.PERSONAL
        assert result.name == PERSONAL_TEAM_NAME
        assert result.slug.startswith("ada-lovelace-")


# --- get_team ---


class TestGetTeam:
    @pytest.mark.asyncio
    async def test_by_id_as_member(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.MEMBER)

        result = await service.get_team(team_id, user_id)

        assert result is sample_team
        uow.teams.get_by_slug.assert_not_called()

    @pytest.mark.asyncio
    async def test_by_slug(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get_by_slug.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.MEMBER)

        result = await service.get_team("acme-abc123", user_id)

        assert result is sample_team
        uow.teams.get_by_slug.assert_called_once_with("acme-abc123")

    @pytest.mark.asyncio
    async def test_not_found(self, service: TeamService, uow: FakeUnitOfWork, user_id: UUID):
        uow.teams.get_by_slug.return_value = None

        with pytest.raises(TeamNotFoundError):
            await service.get_team("nope", user_id)

    @pytest.mark.asyncio
    async def test_non_member_forbidden(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = None

        with pytest.raises(NotAMemberError):
            await service.get_team(team_id, user_id)


# --- update / delete ---


class TestUpdateTeam:
    @pytest.mark.asyncio
    async def test_member_cannot_rename(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.MEMBER)

        with pytest.raises(InsufficientPermissionsError):
            await service.update_team(team_id, user_id, name="New")
        uow.teams.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_renames(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.OWNER)
        uow.teams.update.side_effect = lambda team: team

        result = await service.update_team(team_id, user_id, name="New")

        assert result.name == "New"
        assert result.slug == "acme-abc123"
        assert uow.committed


class TestDeleteTeam:
    @pytest.mark.asyncio
    async def test_soft_deletes(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.OWNER)

        await service.delete_team(team_id, user_id)

        saved = uow.teams.update.call_args.args[0]
        assert saved.deleted_at is not None
        assert uow.committed

    @pytest.mark.asyncio
    async def test_personal_team_kept(
        self, service: TeamService, uow: FakeUnitOfWork, team_id: UUID, user_id: UUID
    ):
        uow.teams.get.return_value = Team(
            id=team_id, name=PERSONAL_TEAM_NAME, type=TeamType.PERSONAL, slug="p"
        )
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.OWNER)

        with pytest.raises(PersonalTeamError):
            await service.delete_team(team_id, user_id)


# --- membership ---


class TestSetMemberRole:
    @pytest.mark.asyncio
    async def test_admin_is_not_a_team_role(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, actor_id, Role.OWNER)

        with pytest.raises(InvalidRoleError):
            await service.set_member_role(team_id, user_id, "admin", actor_id)

    @pytest.mark.asyncio
    async def test_promote_member(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.side_effect = [
            _member(team_id, actor_id, Role.OWNER),
            _member(team_id, user_id, Role.MEMBER),
        ]
        uow.teams.update_member_role.return_value = _member(team_id, user_id, Role.OWNER)

        result = await service.set_member_role(team_id, user_id, "owner", actor_id)

        assert result.role == Role.OWNER
        uow.teams.update_member_role.assert_called_once_with(team_id, user_id, Role.OWNER)

    @pytest.mark.asyncio
    async def test_last_owner_cannot_step_down(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        owner = _member(team_id, user_id, Role.OWNER)
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = owner
        uow.teams.count_owners.return_value = 1

        with pytest.raises(LastOwnerError):
            await service.set_member_role(team_id, user_id, "member", user_id)
        uow.teams.update_member_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_can_step_down_when_another_exists(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.OWNER)
        uow.teams.count_owners.return_value = 2
        uow.teams.update_member_role.return_value = _member(team_id, user_id, Role.MEMBER)

        result = await service.set_member_role(team_id, user_id, "member", user_id)

        assert result.role == Role.MEMBER

    @pytest.mark.asyncio
    async def test_unknown_target(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.side_effect = [_member(team_id, actor_id, Role.OWNER), None]

        with pytest.raises(MemberNotFoundError):
            await service.set_member_role(team_id, user_id, "owner", actor_id)


class TestRemoveMember:
    @pytest.mark.asyncio
    async def test_member_cannot_remove(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, actor_id, Role.MEMBER)

        with pytest.raises(InsufficientPermissionsError):
            await service.remove_member(team_id, user_id, actor_id)

    @pytest.mark.asyncio
    async def test_sole_owner_cannot_be_removed(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = _member(team_id, user_id, Role.OWNER)
        uow.teams.count_owners.return_value = 1

        with pytest.raises(LastOwnerError):
            await service.remove_member(team_id, user_id, user_id)
        uow.teams.remove_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_removes(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        sample_team: Team,
    ):
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.side_effect = [
            _member(team_id, actor_id, Role.OWNER),
            _member(team_id, user_id, Role.MEMBER),
        ]

        await service.remove_member(team_id, user_id, actor_id)

        uow.teams.remove_member.assert_called_once_with(team_id, user_id)
        assert uow.committed


class TestListMembers:
    @pytest.mark.asyncio
    async def test_filters_by_name_or_email(
        self,
        service: TeamService,
        uow: FakeUnitOfWork,
        team_id: UUID,
        user_id: UUID,
        sample_team: Team,
    ):
        ada = TeamMember(
            team_id=team_id,
            user_id=user_id,
            user=User(id=user_id, email="ada@example.com", first_name="Ada", last_name="Lovelace"),
        )
        bob_id = uuid4()
        bob = TeamMember(
            team_id=team_id,
            user_id=bob_id,
            user=User(id=bob_id, email="bob@example.com", first_name="Bob"),
        )
        uow.teams.get.return_value = sample_team
        uow.teams.get_member.return_value = ada
        uow.teams.get_members.return_value = [ada, bob]

        assert await service.list_members(team_id, user_id, query="LOVE") == [ada]
        assert await service.list_members(team_id, user_id, query="bob@") == [bob]
        assert len(await service.list_members(team_id, user_id)) == 2
