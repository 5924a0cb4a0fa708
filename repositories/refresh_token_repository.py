"""
Data access for the `refresh_tokens` ledger.

A refresh JWT is honoured only while its jti has a row here with
revoked_at unset. Rotation flips revoked_at with a conditional update, so
of two requests presenting the same token only one can rotate it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId

from repositories.base import BaseRepository
from schemas.models.token import RefreshTokenDoc
from shared.datetime_utils import utcnow


class RefreshTokenRepository(BaseRepository[RefreshTokenDoc]):
    collection_name = "refresh_tokens"
    model = RefreshTokenDoc

    async def create(
        self, jti: str, user_id: ObjectId, remember_me: bool, expires_at: datetime
    ) -> RefreshTokenDoc:
        doc = RefreshTokenDoc(
            jti=jti,
            user_id=user_id,
            remember_me=remember_me,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        result = await self._col.insert_one(doc.to_mongo())
        return doc.model_copy(update={"id": result.inserted_id})

    async def find_by_jti(self, jti: str) -> Optional[RefreshTokenDoc]:
        return self._to_model(await self._col.find_one({"jti": jti}))

    async def revoke(self, jti: str, replaced_by: Optional[str] = None) -> bool:
        """Revoke a live token. Returns False if it was already revoked or unknown."""
        result = await self._col.update_one(
            {"jti": jti, "revoked_at": None},
            {"$set": {"revoked_at": utcnow(), "replaced_by": replaced_by}},
        )
        return result.modified_count == 1

    async def revoke_all_for_user(self, user_id: ObjectId) -> int:
        result = await self._col.update_many(
            {"user_id": user_id, "revoked_at": None},
            {"$set": {"revoked_at": utcnow()}},
        )
        return result.modified_count
