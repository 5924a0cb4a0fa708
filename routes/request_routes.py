"""
Customer requests and admin notifications.

POST /requests        submit an inquiry (public); writes a notification too
GET  /requests        list inquiries (bearer)
GET  /requests/{id}   one inquiry (bearer)
GET  /notifications   list notifications (bearer)
GET  /notifications/{id}  one notification (bearer)

List endpoints accept page, limit, search, startDate, endDate, type and
category query parameters.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dependencies import get_current_user, get_request_service
from schemas.dto.requests.request import CreateRequestRequest, ListQuery
from schemas.dto.responses.common import PaginationMeta
from schemas.dto.responses.request import (
    NotificationListResponse,
    NotificationResponse,
    RequestListResponse,
    RequestResponse,
)
from schemas.models.user import UserDoc
from services.request_service import RequestService

router = APIRouter(tags=["requests"])


@router.post("/requests", status_code=201, response_model=RequestResponse)
async def create_request(
    body: CreateRequestRequest,
    requests: RequestService = Depends(get_request_service),
) -> RequestResponse:
    return RequestResponse.from_doc(await requests.create_request(body))


@router.get("/requests", response_model=RequestListResponse)
async def list_requests(
    query: Annotated[ListQuery, Query()],
    _user: UserDoc = Depends(get_current_user),
    requests: RequestService = Depends(get_request_service),
) -> RequestListResponse:
    items, total, built = await requests.list_requests(query)
    return RequestListResponse(
        requests=[RequestResponse.from_doc(r) for r in items],
        pagination=PaginationMeta(page=built.page, limit=built.limit, total=total),
    )


@router.get("/requests/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: str,
    _user: UserDoc = Depends(get_current_user),
    requests: RequestService = Depends(get_request_service),
) -> RequestResponse:
    return RequestResponse.from_doc(await requests.get_request(request_id))


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    query: Annotated[ListQuery, Query()],
    _user: UserDoc = Depends(get_current_user),
    requests: RequestService = Depends(get_request_service),
) -> NotificationListResponse:
    items, total, built = await requests.list_notifications(query)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_doc(n) for n in items],
        pagination=PaginationMeta(page=built.page, limit=built.limit, total=total),
    )


@router.get("/notifications/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    _user: UserDoc = Depends(get_current_user),
    requests: RequestService = Depends(get_request_service),
) -> NotificationResponse:
    return NotificationResponse.from_doc(
        await requests.get_notification(notification_id)
    )
