"""
User document model.

Maps to the `users` MongoDB collection.

Two creation paths produce slightly different shapes:
- Password registration: password_hash set, is_email_confirmed starts False
- Google login: google_id set, password_hash None, email already confirmed

password_hash is excluded from every serialisation except to_mongo(), so a
UserDoc can never leak it through model_dump()/JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.models.base import TimestampedDoc


class UserRole(str, Enum):
    ADMIN = "Admin"
    GUEST = "Guest"


class UserDoc(TimestampedDoc):
    """Document model for the `users` collection."""

    username: Optional[str] = None
    email: str
    password_hash: Optional[str] = Field(default=None, exclude=True)
    google_id: Optional[str] = None
    image: Optional[str] = None
    is_email_confirmed: bool = False
    role: UserRole = UserRole.ADMIN

    def to_mongo(self) -> dict:
        data = super().to_mongo()
        data["password_hash"] = self.password_hash
        data["role"] = self.role.value
        return data

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
