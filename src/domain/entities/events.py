"""Outbound domain events.

Services return events instead of emitting them; the API layer hands them to
the dispatcher once the transaction has committed.
"""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class InviteCreated:
    """An invitation was created and should be delivered to the invitee."""

    type: ClassVar[str] = "invite.created"

    inviter_email: str
    inviter_name: str
    invitee_email: str
    resource_type: str
    resource_name: str
    token: str
    ttl_days: int
    invitee_name: str | None = None
