"""Customer requests (inquiries) and the notifications they produce."""

from __future__ import annotations

from typing import Any

from builders.query import BuiltQuery, ListQueryBuilder
from errors import NotFoundError
from repositories.request_repository import NotificationRepository, RequestRepository
from schemas.dto.requests.request import CreateRequestRequest, ListQuery
from schemas.models.base import parse_object_id
from schemas.models.request import NotificationDoc, RequestDoc
from shared.logging import get_logger

log = get_logger(__name__)

REQUEST_SEARCH_FIELDS = ("name", "phone_number", "textile_name", "message")


class RequestService:
    def __init__(
        self, requests: RequestRepository, notifications: NotificationRepository
    ) -> None:
        self._requests = requests
        self._notifications = notifications

    async def create_request(self, data: CreateRequestRequest) -> RequestDoc:
        request, notification = await self._requests.create_with_notification(
            RequestDoc(**data.model_dump())
        )
        log.info(
            "request_created",
            request_id=str(request.id),
            notification_id=str(notification.id),
            request_type=request.type,
        )
        return request

    async def get_request(self, request_id: Any) -> RequestDoc:
        oid = parse_object_id(request_id)
        request = await self._requests.find_by_id(oid) if oid is not None else None
        if request is None:
            raise NotFoundError(f"Request {request_id} not found")
        return request

    async def list_requests(
        self, query: ListQuery
    ) -> tuple[list[RequestDoc], int, BuiltQuery]:
        built = (
            ListQueryBuilder(query, search_fields=REQUEST_SEARCH_FIELDS)
            .parse_pagination()
            .parse_search()
            .parse_date_range()
            .parse_exact_filters()
            .build()
        )
        requests, total = await self._requests.find_page(built)
        return requests, total, built

    async def get_notification(self, notification_id: Any) -> NotificationDoc:
        oid = parse_object_id(notification_id)
        notification = (
            await self._notifications.find_by_id(oid) if oid is not None else None
        )
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")
        return notification

    async def list_notifications(
        self, query: ListQuery
    ) -> tuple[list[NotificationDoc], int, BuiltQuery]:
        built = (
            ListQueryBuilder(query, search_fields=("owner",))
            .parse_pagination()
            .parse_search()
            .parse_date_range()
            .parse_exact_filters()
            .build()
        )
        notifications, total = await self._notifications.find_page(built)
        return notifications, total, built
