"""User domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class User:
    """Domain entity for a registered user."""

    email: str
    first_name: str = ""
    last_name: str = ""
    password_hash: str = ""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over "first last" and e-mail."""
        needle = query.strip().lower()
        return needle in self.full_name.lower() or needle in self.email


def normalize_email(email: str) -> str:
    """E-mails are compared and stored lower-cased."""
    return email.strip().lower()
