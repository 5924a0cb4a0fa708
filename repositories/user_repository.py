"""Data access for the `users` collection."""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from errors import ConflictError
from repositories.base import BaseRepository
from schemas.models.user import UserDoc
from shared.datetime_utils import utcnow


class UserRepository(BaseRepository[UserDoc]):
    collection_name = "users"
    model = UserDoc

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return self._to_model(await self._col.find_one({"email": email.lower()}))

    async def find_by_google_id(self, google_id: str) -> Optional[UserDoc]:
        return self._to_model(await self._col.find_one({"google_id": google_id}))

    async def create(self, user: UserDoc) -> UserDoc:
        """Insert *user*; the unique indexes are the final word on duplicates."""
        now = utcnow()
        user = user.model_copy(update={"created_at": now, "updated_at": now})
        try:
            result = await self._col.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            key = next(iter((e.details or {}).get("keyPattern", {}) or {"email": 1}))
            raise ConflictError(f"User with that {key} already exists", field=key) from e
        return user.model_copy(update={"id": result.inserted_id})

    async def update_fields(
        self, user_id: ObjectId, fields: dict[str, Any]
    ) -> Optional[UserDoc]:
        """Set *fields* on the user and return the updated document."""
        try:
            raw = await self._col.find_one_and_update(
                {"_id": user_id},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            key = next(iter((e.details or {}).get("keyPattern", {}) or {"username": 1}))
            raise ConflictError(f"User with that {key} already exists", field=key) from e
        return self._to_model(raw)

    async def mark_email_confirmed(self, email: str) -> Optional[UserDoc]:
        raw = await self._col.find_one_and_update(
            {"email": email.lower()},
            {"$set": {"is_email_confirmed": True, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(raw)

    async def set_password_hash(self, user_id: ObjectId, password_hash: str) -> bool:
        result = await self._col.update_one(
            {"_id": user_id},
            {"$set": {"password_hash": password_hash, "updated_at": utcnow()}},
        )
        return result.matched_count == 1

    async def delete(self, user_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": user_id})
        return result.deleted_count == 1
