"""
Response DTOs for authentication and user endpoints.

UserProfileResponse  public user shape (never includes the password hash)
AuthResponse         POST /auth/login, POST /auth/email/verify,
                      POST /auth/refresh (200)
RegisterResponse     POST /auth/register (201)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.models.user import UserDoc


class UserProfileResponse(BaseModel):
    """User profile shape returned by every endpoint that exposes a user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: Optional[str] = None
    email: str
    image: Optional[str] = None
    role: str
    is_email_confirmed: bool
    has_google: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            image=user.image,
            role=user.role.value,
            is_email_confirmed=user.is_email_confirmed,
            has_google=bool(user.google_id),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    """Access token plus the authenticated user.

    The refresh token is delivered only as an HTTP-only cookie.
    """

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    user: UserProfileResponse


class RegisterResponse(BaseModel):
    """Response body for POST /auth/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserProfileResponse
    verification_sent: bool


class UserListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: list[UserProfileResponse]
    pagination: PaginationMeta
