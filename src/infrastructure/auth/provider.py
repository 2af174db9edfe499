"""Session token provider interface."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """Identity carried by a session token. Not a database row."""

    id: UUID
    email: str
    display_name: Optional[str] = None


class IAuthProvider(Protocol):
    """Issues and resolves session tokens."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's user, or None when it is invalid or expired."""
        ...

    def create_token(self, user: TokenUser) -> str: ...
