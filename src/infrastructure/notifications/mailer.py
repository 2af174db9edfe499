"""Invite delivery. Logs the invite link instead of sending mail."""

import structlog

from core.config import settings
from domain.entities.events import InviteCreated

logger = structlog.get_logger()


def invite_link(token: str, base_url: str | None = None) -> str:
    base = (base_url or settings.invite_base_url).rstrip("/")
    return f"{base}/{token}"


class LoggingInviteMailer:
    """Stand-in mail sender for InviteCreated events."""

    def __init__(self, base_url: str | None = None) -> None:
        self._base_url = base_url

    async def __call__(self, event: InviteCreated) -> None:
        logger.info(
            "invite_email",
            to=event.invitee_email,
            invitee_name=event.invitee_name,
            inviter=event.inviter_name,
            resource_type=event.resource_type,
            resource_name=event.resource_name,
            expires_in_days=event.ttl_days,
            link=invite_link(event.token, self._base_url),
        )
