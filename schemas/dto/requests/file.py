"""Request DTOs for file storage endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DeleteFilesRequest(BaseModel):
    """Request body for DELETE /files."""

    urls: list[str] = Field(min_length=1)
