"""
Shared fixtures: in-memory repositories, a recording email sender and fully
wired services built on top of them.

The fakes mirror the repository method signatures exactly, so services are
exercised unchanged; only the MongoDB driver is replaced.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

import pytest
from bson import ObjectId

from builders.query import BuiltQuery
from config import AppSettings, DatabaseSettings, JWTSettings
from errors import ConflictError
from infrastructure.cache.user_lease import UserLease
from schemas.models.token import (
    OtpCodeDoc,
    RefreshTokenDoc,
    VerificationCodeDoc,
    VerificationCodeType,
)
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.cookie_service import CookieService
from services.token_service import TokenService
from services.user_service import UserService
from services.verification_service import VerificationService
from shared.datetime_utils import utcnow

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012"


# ── Fake repositories ─────────────────────────────────────────────────────────


class FakeUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, UserDoc] = {}

    async def find_by_id(self, doc_id: ObjectId) -> Optional[UserDoc]:
        return self.docs.get(doc_id)

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return next((u for u in self.docs.values() if u.email == email.lower()), None)

    async def find_by_google_id(self, google_id: str) -> Optional[UserDoc]:
        return next((u for u in self.docs.values() if u.google_id == google_id), None)

    async def create(self, user: UserDoc) -> UserDoc:
        if await self.find_by_email(user.email) is not None:
            raise ConflictError("User with that email already exists", field="email")
        now = utcnow()
        user = user.model_copy(
            update={"id": ObjectId(), "created_at": now, "updated_at": now}
        )
        self.docs[user.id] = user
        return user

    async def update_fields(
        self, user_id: ObjectId, fields: dict[str, Any]
    ) -> Optional[UserDoc]:
        user = self.docs.get(user_id)
        if user is None:
            return None
        user = user.model_copy(update={**fields, "updated_at": utcnow()})
        self.docs[user_id] = user
        return user

    async def mark_email_confirmed(self, email: str) -> Optional[UserDoc]:
        user = await self.find_by_email(email)
        if user is None:
            return None
        return await self.update_fields(user.id, {"is_email_confirmed": True})

    async def set_password_hash(self, user_id: ObjectId, password_hash: str) -> bool:
        return await self.update_fields(user_id, {"password_hash": password_hash}) is not None

    async def delete(self, user_id: ObjectId) -> bool:
        return self.docs.pop(user_id, None) is not None

    async def find_page(self, built: BuiltQuery) -> tuple[list[UserDoc], int]:
        items = list(self.docs.values())
        end = built.skip + built.limit if built.limit else None
        return items[built.skip:end], len(items)


class FakeVerificationCodeRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, VerificationCodeDoc] = {}

    async def create(
        self, user_id: ObjectId, code_type: VerificationCodeType, ttl_seconds: int
    ) -> VerificationCodeDoc:
        now = utcnow()
        doc = VerificationCodeDoc(
            _id=ObjectId(),
            user_id=user_id,
            type=code_type,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        self.docs[doc.id] = doc
        return doc

    async def consume(
        self, code_id: ObjectId, code_type: VerificationCodeType
    ) -> Optional[VerificationCodeDoc]:
        doc = self.docs.get(code_id)
        if doc is None or doc.type != code_type or doc.expires_at <= utcnow():
            return None
        return self.docs.pop(code_id)

    async def restore(self, code: VerificationCodeDoc) -> None:
        self.docs[code.id] = code

    async def delete_for_user(
        self, user_id: ObjectId, code_type: VerificationCodeType
    ) -> int:
        doomed = [
            k for k, d in self.docs.items() if d.user_id == user_id and d.type == code_type
        ]
        for key in doomed:
            del self.docs[key]
        return len(doomed)

    async def count_created_since(
        self, user_id: ObjectId, code_type: VerificationCodeType, since
    ) -> int:
        return sum(
            1
            for d in self.docs.values()
            if d.user_id == user_id and d.type == code_type and d.created_at >= since
        )

    def for_user(self, user_id: ObjectId) -> list[VerificationCodeDoc]:
        return [d for d in self.docs.values() if d.user_id == user_id]


class FakeOtpCodeRepository:
    def __init__(self) -> None:
        self.docs: dict[str, OtpCodeDoc] = {}

    async def upsert(self, email: str, otp_hash: str, ttl_seconds: int) -> OtpCodeDoc:
        now = utcnow()
        doc = OtpCodeDoc(
            _id=ObjectId(),
            email=email,
            otp_hash=otp_hash,
            attempts=0,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        self.docs[email] = doc
        return doc

    async def find_by_email(self, email: str) -> Optional[OtpCodeDoc]:
        return self.docs.get(email)

    async def record_failed_attempt(
        self, email: str, otp_hash: str
    ) -> Optional[OtpCodeDoc]:
        doc = self.docs.get(email)
        if doc is None or doc.otp_hash != otp_hash:
            return None
        doc = doc.model_copy(update={"attempts": doc.attempts + 1})
        self.docs[email] = doc
        return doc

    async def consume(self, email: str, otp_hash: str) -> bool:
        doc = self.docs.get(email)
        if doc is None or doc.otp_hash != otp_hash:
            return False
        del self.docs[email]
        return True


class FakeRefreshTokenRepository:
    def __init__(self) -> None:
        self.docs: dict[str, RefreshTokenDoc] = {}

    async def create(
        self, jti: str, user_id: ObjectId, remember_me: bool, expires_at
    ) -> RefreshTokenDoc:
        doc = RefreshTokenDoc(
            _id=ObjectId(),
            jti=jti,
            user_id=user_id,
            remember_me=remember_me,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        self.docs[jti] = doc
        return doc

    async def find_by_jti(self, jti: str) -> Optional[RefreshTokenDoc]:
        return self.docs.get(jti)

    async def revoke(self, jti: str, replaced_by: Optional[str] = None) -> bool:
        doc = self.docs.get(jti)
        if doc is None or doc.revoked_at is not None:
            return False
        self.docs[jti] = doc.model_copy(
            update={"revoked_at": utcnow(), "replaced_by": replaced_by}
        )
        return True

    async def revoke_all_for_user(self, user_id: ObjectId) -> int:
        count = 0
        for jti, doc in list(self.docs.items()):
            if doc.user_id == user_id and doc.revoked_at is None:
                self.docs[jti] = doc.model_copy(update={"revoked_at": utcnow()})
                count += 1
        return count

    def live_for_user(self, user_id: ObjectId) -> list[RefreshTokenDoc]:
        return [
            d for d in self.docs.values() if d.user_id == user_id and d.revoked_at is None
        ]


class FakeEmailSender:
    """Records every message instead of sending it."""

    def __init__(self) -> None:
        self.verification_links: list[tuple[str, str]] = []
        self.otps: list[tuple[str, str]] = []
        self.reset_links: list[tuple[str, str]] = []

    async def send_verification_email(self, email: str, link: str) -> None:
        self.verification_links.append((email, link))

    async def send_verification_otp(self, email: str, otp_code: str) -> None:
        self.otps.append((email, otp_code))

    async def send_reset_password_url(self, email: str, link: str) -> None:
        self.reset_links.append((email, link))


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        app_url="http://api.test",
        client_url="http://client.test",
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(
            jwt_access_secret=ACCESS_SECRET,
            jwt_refresh_secret=REFRESH_SECRET,
            cookie_secure=False,
        ),
    )


@pytest.fixture
def users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def codes() -> FakeVerificationCodeRepository:
    return FakeVerificationCodeRepository()


@pytest.fixture
def otps() -> FakeOtpCodeRepository:
    return FakeOtpCodeRepository()


@pytest.fixture
def refresh_tokens() -> FakeRefreshTokenRepository:
    return FakeRefreshTokenRepository()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService(settings.jwt)


@pytest.fixture
def cookie_service(settings) -> CookieService:
    return CookieService(settings.jwt)


@pytest.fixture
def verification_service(codes, otps, settings) -> VerificationService:
    return VerificationService(codes, otps, settings.verification, UserLease(None))


@pytest.fixture
def auth_service(
    users, refresh_tokens, verification_service, token_service, email_sender, settings
) -> AuthService:
    return AuthService(
        users, refresh_tokens, verification_service, token_service, email_sender, settings
    )


@pytest.fixture
def user_service(users, refresh_tokens) -> UserService:
    return UserService(users, refresh_tokens)
