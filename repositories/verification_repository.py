"""
Data access for `verification_codes` and `otp_codes`.

Both collections hold single-use secrets, so every consuming operation is a
single atomic find-and-delete or conditional update. Two concurrent requests
can never both redeem the same code.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument

from repositories.base import BaseRepository
from schemas.models.token import OtpCodeDoc, VerificationCodeDoc, VerificationCodeType
from shared.datetime_utils import utcnow


class VerificationCodeRepository(BaseRepository[VerificationCodeDoc]):
    collection_name = "verification_codes"
    model = VerificationCodeDoc

    async def create(
        self, user_id: ObjectId, code_type: VerificationCodeType, ttl_seconds: int
    ) -> VerificationCodeDoc:
        now = utcnow()
        doc = VerificationCodeDoc(
            user_id=user_id,
            type=code_type,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        result = await self._col.insert_one(doc.to_mongo())
        return doc.model_copy(update={"id": result.inserted_id})

    async def consume(
        self, code_id: ObjectId, code_type: VerificationCodeType
    ) -> Optional[VerificationCodeDoc]:
        """Delete and return the code if it exists, matches *code_type* and is live."""
        raw = await self._col.find_one_and_delete(
            {
                "_id": code_id,
                "type": code_type.value,
                "expires_at": {"$gt": utcnow()},
            }
        )
        return self._to_model(raw)

    async def restore(self, code: VerificationCodeDoc) -> None:
        """Put a consumed code back under its original id."""
        await self._col.insert_one(code.to_mongo())

    async def delete_for_user(
        self, user_id: ObjectId, code_type: VerificationCodeType
    ) -> int:
        result = await self._col.delete_many(
            {"user_id": user_id, "type": code_type.value}
        )
        return result.deleted_count

    async def count_created_since(
        self, user_id: ObjectId, code_type: VerificationCodeType, since: datetime
    ) -> int:
        return await self._col.count_documents(
            {
                "user_id": user_id,
                "type": code_type.value,
                "created_at": {"$gte": since},
            }
        )


class OtpCodeRepository(BaseRepository[OtpCodeDoc]):
    collection_name = "otp_codes"
    model = OtpCodeDoc

    async def upsert(self, email: str, otp_hash: str, ttl_seconds: int) -> OtpCodeDoc:
        """Replace any live OTP for *email* with a fresh one."""
        now = utcnow()
        raw = await self._col.find_one_and_update(
            {"email": email},
            {
                "$set": {
                    "otp_hash": otp_hash,
                    "attempts": 0,
                    "created_at": now,
                    "expires_at": now + timedelta(seconds=ttl_seconds),
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self.model.model_validate(raw)

    async def find_by_email(self, email: str) -> Optional[OtpCodeDoc]:
        return self._to_model(await self._col.find_one({"email": email}))

    async def record_failed_attempt(
        self, email: str, otp_hash: str
    ) -> Optional[OtpCodeDoc]:
        """Increment the attempt counter of this exact OTP (not a replacement)."""
        raw = await self._col.find_one_and_update(
            {"email": email, "otp_hash": otp_hash},
            {"$inc": {"attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(raw)

    async def consume(self, email: str, otp_hash: str) -> bool:
        """Delete this exact OTP; False when another request got there first."""
        raw = await self._col.find_one_and_delete({"email": email, "otp_hash": otp_hash})
        return raw is not None
