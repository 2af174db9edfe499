"""Unit tests for UserService."""

from uuid import uuid4

import pytest
from werkzeug.security import generate_password_hash

from core.exceptions import EmailTakenError, InvalidCredentialsError, UserNotFoundError
from domain.entities.team import TeamType
from domain.entities.user import User
from domain.policies.roles import Role
from domain.services.team_service import PERSONAL_TEAM_NAME
from domain.services.user_service import UserService
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def service(uow: FakeUnitOfWork) -> UserService:
    return UserService(lambda: uow)


class TestRegister:
    @pytest.mark.asyncio
    async def test_creates_user_and_personal_team(
        self, service: UserService, uow: FakeUnitOfWork
    ):
        uow.users.get_by_email.return_value = None
        uow.users.create.side_effect = lambda user: user
        uow.teams.create.side_effect = lambda team: team

        user = await service.register("Ada@Example.com", "s3cret-pass", "Ada", "Lovelace")

        assert user.email == "ada@example.com"
        assert user.password_hash != "s3cret-pass"
        team = uow.teams.create.call_args.args[0]
        assert team.type == TeamType.PERSONAL
        assert team.name == PERSONAL_TEAM_NAME
        assert team.slug.startswith("ada-lovelace-")
        owner = uow.teams.add_member.call_args.args[0]
        assert (owner.user_id, owner.role) == (user.id, Role.OWNER)
        assert uow.committed

    @pytest.mark.asyncio
    async def test_email_taken(self, service: UserService, uow: FakeUnitOfWork):
        uow.users.get_by_email.return_value = User(email="ada@example.com")

        with pytest.raises(EmailTakenError):
            await service.register("ada@example.com", "s3cret-pass", "Ada", "")
        uow.users.create.assert_not_called()


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, service: UserService, uow: FakeUnitOfWork):
        stored = User(email="ada@example.com", password_hash=generate_password_hash("pw-123456"))
        uow.users.get_by_email.return_value = stored

        assert await service.authenticate(" ADA@example.com", "pw-123456") is stored
        uow.users.get_by_email.assert_called_once_with("ada@example.com")

    @pytest.mark.asyncio
    async def test_wrong_password(self, service: UserService, uow: FakeUnitOfWork):
        uow.users.get_by_email.return_value = User(
            email="ada@example.com", password_hash=generate_password_hash("pw-123456")
        )

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("ada@example.com", "nope")

    @pytest.mark.asyncio
    async def test_unknown_email(self, service: UserService, uow: FakeUnitOfWork):
        uow.users.get_by_email.return_value = None

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("ghost@example.com", "pw")


class TestGetUser:
    @pytest.mark.asyncio
    async def test_missing(self, service: UserService, uow: FakeUnitOfWork):
        uow.users.get.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.get_user(uuid4())
