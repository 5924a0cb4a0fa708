"""Request DTOs for user management endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UpdateUserRequest(BaseModel):
    """Request body for PATCH /users/{id}. Only the given fields change."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    username: Optional[str] = Field(default=None, min_length=1, max_length=64)
    image: Optional[str] = Field(default=None, min_length=1)
