"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from domain.entities.events import InviteCreated
from domain.services.invitation_service import InvitationService
from domain.services.milestone_service import MilestoneService
from domain.services.project_service import ProjectService
from domain.services.team_service import TeamService
from domain.services.user_service import UserService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.notifications.dispatcher import EventDispatcher
from infrastructure.notifications.mailer import LoggingInviteMailer


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_user_service() -> UserService:
    """Get User service instance."""
    return UserService(get_uow_factory())


@lru_cache
def get_team_service() -> TeamService:
    """Get Team service instance."""
    return TeamService(get_uow_factory())


@lru_cache
def get_project_service() -> ProjectService:
    """Get Project service instance."""
    return ProjectService(get_uow_factory())


@lru_cache
def get_invitation_service() -> InvitationService:
    """Get Invitation service instance."""
    return InvitationService(get_uow_factory())


@lru_cache
def get_milestone_service() -> MilestoneService:
    """Get Milestone service instance."""
    return MilestoneService(get_uow_factory())


@lru_cache
def get_event_dispatcher() -> EventDispatcher:
    """Get the event dispatcher with the invite mailer subscribed."""
    dispatcher = EventDispatcher()
    dispatcher.subscribe(InviteCreated.type, LoggingInviteMailer())
    return dispatcher
