"""Response DTOs for customer requests, notifications and file uploads."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.models.request import NotificationDoc, RequestDoc


class RequestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    phone_number: str
    type: str
    textile_name: Optional[str] = None
    category: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: RequestDoc) -> "RequestResponse":
        return cls(
            id=str(doc.id),
            name=doc.name,
            phone_number=doc.phone_number,
            type=doc.type,
            textile_name=doc.textile_name,
            category=doc.category,
            message=doc.message,
            created_at=doc.created_at,
        )


class RequestListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requests: list[RequestResponse]
    pagination: PaginationMeta


class NotificationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner: str
    type: str
    is_read: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: NotificationDoc) -> "NotificationResponse":
        return cls(
            id=str(doc.id),
            owner=doc.owner,
            type=doc.type,
            is_read=doc.is_read,
            created_at=doc.created_at,
        )


class NotificationListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notifications: list[NotificationResponse]
    pagination: PaginationMeta


class FileUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    urls: list[str]
