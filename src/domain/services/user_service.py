"""User service layer: signup and credential checks."""

from collections.abc import Callable
from uuid import UUID

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from core.exceptions import EmailTakenError, InvalidCredentialsError, UserNotFoundError
from domain.entities.team import Team, TeamType
from domain.entities.user import User, normalize_email
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.slugs import create_with_unique_slug
from domain.services.team_service import PERSONAL_TEAM_NAME, insert_team_with_owner

logger = structlog.get_logger()


class UserService:
    """Service layer for User accounts."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """Create a user and their PERSONAL team in one transaction.

        Raises:
            EmailTakenError: an account already exists for the e-mail.
        """
        normalized = normalize_email(email)
        password_hash = generate_password_hash(password)

        async def _create(slug: str) -> User:
            async with self._uow_factory() as uow:
                if await uow.users.get_by_email(normalized):
                    raise EmailTakenError(normalized)

                user = await uow.users.create(
                    User(
                        email=normalized,
                        first_name=first_name.strip(),
                        last_name=last_name.strip(),
                        password_hash=password_hash,
                    )
                )
                await insert_team_with_owner(
                    uow,
                    Team(name=PERSONAL_TEAM_NAME, type=TeamType.PERSONAL, slug=slug),
                    user.id,
                )
                await uow.commit()
                return user

        # A concurrent signup with the same e-mail surfaces as a unique
        # violation too; the retry then finds the row and raises EmailTakenError.
        user = await create_with_unique_slug(
            f"{first_name} {last_name}", _create, fallback="personal"
        )
        logger.info("user_registered", user_id=str(user.id))
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check an e-mail/password pair.

        Raises:
            InvalidCredentialsError: unknown e-mail, deleted account or wrong password.
        """
        async with self._uow_factory() as uow:
            user = await uow.users.get_by_email(normalize_email(email))

        if (
            user is None
            or user.deleted_at is not None
            or not check_password_hash(user.password_hash, password)
        ):
            logger.info("login_failed")
            raise InvalidCredentialsError()
        return user

    async def get_user(self, user_id: UUID) -> User:
        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
        if user is None or user.deleted_at is not None:
            raise UserNotFoundError(str(user_id))
        return user
