"""
Data access for customer `requests` and their `notifications`.

A request and its notification are written in one multi-document
transaction (requires a replica set or sharded cluster).
"""

from __future__ import annotations

from pymongo.asynchronous.database import AsyncDatabase

from repositories.base import BaseRepository
from schemas.models.request import NotificationDoc, RequestDoc
from shared.datetime_utils import utcnow


class NotificationRepository(BaseRepository[NotificationDoc]):
    collection_name = "notifications"
    model = NotificationDoc


class RequestRepository(BaseRepository[RequestDoc]):
    collection_name = "requests"
    model = RequestDoc

    def __init__(self, db: AsyncDatabase) -> None:
        super().__init__(db)
        self._notifications = db[NotificationRepository.collection_name]

    async def create_with_notification(
        self, request: RequestDoc
    ) -> tuple[RequestDoc, NotificationDoc]:
        """Insert the request and its notification atomically.

        The transaction commits when the block exits cleanly and aborts on
        any exception; the session is always ended.
        """
        now = utcnow()
        request = request.model_copy(update={"created_at": now, "updated_at": now})
        notification = NotificationDoc(
            owner=request.name, type=request.type, created_at=now, updated_at=now
        )

        async with self._db.client.start_session() as session:
            async with await session.start_transaction():
                req_result = await self._col.insert_one(
                    request.to_mongo(), session=session
                )
                note_result = await self._notifications.insert_one(
                    notification.to_mongo(), session=session
                )

        return (
            request.model_copy(update={"id": req_result.inserted_id}),
            notification.model_copy(update={"id": note_result.inserted_id}),
        )
