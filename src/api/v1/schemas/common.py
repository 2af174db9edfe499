"""Common Pydantic schemas shared across the API."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error_code: str
    kind: str
    message: str
    details: Any | None = None


class UserSummary(BaseModel):
    """Public view of a user embedded in other responses."""

    id: UUID
    email: str
    first_name: str
    last_name: str


class EmailField(BaseModel):
    """Mixin with the shared e-mail validation."""

    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        v = v.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Invalid email address")
        return v
