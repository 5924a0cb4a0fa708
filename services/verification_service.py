"""
Verification codes and OTPs.

Verification codes are typed single-use records whose id goes into an emailed
link. OTPs are 4-digit codes emailed after the link is opened; one live OTP
per email, stored as an argon2 hash, with a failed-attempt counter.

Redemption is always a single atomic find-and-delete, so two concurrent
requests can never both succeed with the same code.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from bson import ObjectId

from config import VerificationSettings
from errors import CodeExpiredError, CodeInvalidError
from infrastructure.cache.user_lease import UserLease
from repositories.verification_repository import (
    OtpCodeRepository,
    VerificationCodeRepository,
)
from schemas.models.base import parse_object_id
from schemas.models.token import VerificationCodeDoc, VerificationCodeType
from shared.crypto import hash_otp, verify_otp_hash
from shared.datetime_utils import ensure_utc, utcnow
from shared.generators import generate_otp_code
from shared.logging import get_logger

log = get_logger(__name__)


class VerificationService:
    def __init__(
        self,
        codes: VerificationCodeRepository,
        otps: OtpCodeRepository,
        settings: VerificationSettings,
        lease: UserLease,
    ) -> None:
        self._codes = codes
        self._otps = otps
        self._settings = settings
        self._lease = lease

    def _ttl_for(self, code_type: VerificationCodeType) -> int:
        if code_type is VerificationCodeType.PASSWORD_RESET:
            return self._settings.password_reset_ttl_seconds
        return self._settings.email_verification_ttl_seconds

    async def create_verification_code(
        self,
        user_id: ObjectId,
        code_type: VerificationCodeType,
        ttl_seconds: Optional[int] = None,
    ) -> VerificationCodeDoc:
        ttl = ttl_seconds if ttl_seconds is not None else self._ttl_for(code_type)
        code = await self._codes.create(user_id, code_type, ttl)
        log.info(
            "verification_code_created",
            user_id=str(user_id),
            code_type=code_type.value,
        )
        return code

    async def resend_verification_code(self, user_id: ObjectId) -> VerificationCodeDoc:
        """Replace every EmailVerification code of the user with a fresh one."""
        async with self._lease.hold("resend_verification", str(user_id)):
            removed = await self._codes.delete_for_user(
                user_id, VerificationCodeType.EMAIL_VERIFICATION
            )
            code = await self.create_verification_code(
                user_id, VerificationCodeType.EMAIL_VERIFICATION
            )
        log.info("verification_code_resent", user_id=str(user_id), removed=removed)
        return code

    async def consume_verification_code(
        self, code_id: str, code_type: VerificationCodeType
    ) -> Optional[VerificationCodeDoc]:
        """Redeem a code. None for a malformed, unknown, expired or mistyped id."""
        oid = parse_object_id(code_id)
        if oid is None:
            return None
        return await self._codes.consume(oid, code_type)

    async def restore_verification_code(self, code: VerificationCodeDoc) -> None:
        """Undo a redemption whose follow-up step failed."""
        await self._codes.restore(code)
        log.info("verification_code_restored", user_id=str(code.user_id))

    async def password_reset_requested_recently(self, user_id: ObjectId) -> bool:
        since = utcnow() - timedelta(seconds=self._settings.password_reset_cooldown_seconds)
        recent = await self._codes.count_created_since(
            user_id, VerificationCodeType.PASSWORD_RESET, since
        )
        return recent > 0

    async def generate_otp_code(self, email: str) -> str:
        """Issue a new OTP for *email*, replacing any live one.

        Returns the plaintext so the caller can mail it; only the hash is stored.
        """
        otp_code = generate_otp_code(self._settings.otp_min, self._settings.otp_max)
        await self._otps.upsert(email, hash_otp(otp_code), self._settings.otp_ttl_seconds)
        log.info("otp_issued", email=email)
        return otp_code

    async def verify_otp(self, email: str, otp_code: str) -> None:
        """Redeem the OTP for *email*.

        Raises:
            CodeExpiredError: no live OTP for the email.
            CodeInvalidError: wrong code; the OTP is discarded once
                otp_max_attempts wrong codes have been submitted.
        """
        record = await self._otps.find_by_email(email)
        if record is None or ensure_utc(record.expires_at) <= utcnow():
            raise CodeExpiredError(
                "Verification code has expired. Please request a new one",
                field="otpCode",
            )

        max_attempts = self._settings.otp_max_attempts
        if record.attempts < max_attempts and verify_otp_hash(otp_code, record.otp_hash):
            if not await self._otps.consume(email, record.otp_hash):
                # Redeemed or replaced by a concurrent request
                raise CodeExpiredError(
                    "Verification code has expired. Please request a new one",
                    field="otpCode",
                )
            log.info("otp_verified", email=email)
            return

        updated = await self._otps.record_failed_attempt(email, record.otp_hash)
        attempts = updated.attempts if updated is not None else record.attempts + 1
        log.info("otp_verification_failed", email=email, attempts=attempts)

        if attempts >= max_attempts:
            await self._otps.consume(email, record.otp_hash)
            raise CodeInvalidError(
                "Too many incorrect attempts. Please request a new code",
                field="otpCode",
                details={"attempts_remaining": 0},
            )
        raise CodeInvalidError(
            "Invalid verification code",
            field="otpCode",
            details={"attempts_remaining": max_attempts - attempts},
        )
