"""
Verification, OTP and refresh-token document models.

verification_codes  typed single-use codes (email verification link,
                    password reset link); the document _id is the code.
otp_codes           one live numeric OTP per email; otp_hash stores the
                    argon2 hash, the plaintext is never stored.
refresh_tokens      ledger of issued refresh-token ids (jti). A token is
                    usable only while its row exists and revoked_at is None.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, PyObjectId


class VerificationCodeType(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class VerificationCodeDoc(MongoBaseModel):
    """Document model for the `verification_codes` collection."""

    user_id: PyObjectId
    type: VerificationCodeType
    created_at: datetime
    expires_at: datetime

    def to_mongo(self) -> dict:
        data = super().to_mongo()
        data["type"] = self.type.value
        return data


class OtpCodeDoc(MongoBaseModel):
    """Document model for the `otp_codes` collection."""

    email: str
    otp_hash: str
    attempts: int = Field(default=0, ge=0)
    created_at: datetime
    expires_at: datetime


class RefreshTokenDoc(MongoBaseModel):
    """Document model for the `refresh_tokens` collection."""

    jti: str
    user_id: PyObjectId
    remember_me: bool = False
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None
    replaced_by: Optional[str] = None
