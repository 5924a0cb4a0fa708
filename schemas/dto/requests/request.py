"""
Request DTOs for customer inquiries and shared list queries.

CreateRequestRequest  POST /requests
ListQuery             query string accepted by every list endpoint
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateRequestRequest(BaseModel):
    """Request body for POST /requests."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=120)
    phone_number: str = Field(alias="phoneNumber", min_length=3, max_length=32)
    type: str = Field(min_length=1, max_length=64)
    textile_name: Optional[str] = Field(default=None, alias="textileName")
    category: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=2000)


class ListQuery(BaseModel):
    """Pagination and filter parameters for list endpoints.

    Values arrive as raw query-string strings; ListQueryBuilder does the
    lenient parsing (unparseable numbers/dates are ignored, not rejected).
    """

    model_config = ConfigDict(populate_by_name=True)

    page: Optional[str] = None
    limit: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    type: Optional[str] = None
    category: Optional[str] = None
