"""Pydantic schemas for signup and login."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import EmailField


class SignupRequest(EmailField):
    """Schema for creating an account."""

    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)


class LoginRequest(EmailField):
    """Schema for exchanging credentials for a bearer token."""

    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Schema for User response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    created_at: datetime


class TokenResponse(BaseModel):
    """Bearer token issued at signup and login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
