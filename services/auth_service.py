"""
Authentication orchestration.

A user moves through

    Unregistered -> PendingEmailVerification -> PendingOtp -> Active

register() mails a verification link, opening the link mails an OTP, and
submitting the OTP confirms the email and opens a session. A session is an
access token plus a refresh token whose jti is recorded in the refresh-token
ledger; refreshing rotates the jti, and presenting an already-rotated token
revokes every session of that user.

Services raise AppError subclasses; routes never catch them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from bson import ObjectId

from config import AppSettings
from errors import (
    CodeInvalidError,
    ConflictError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    NotFoundError,
    RateLimitError,
    TokenInvalidError,
    TokenMissingError,
    ValidationError,
)
from infrastructure.email.protocol import EmailSender
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.user_repository import UserRepository
from schemas.dto.requests.auth import RegisterRequest
from schemas.models.base import parse_object_id
from schemas.models.token import VerificationCodeType
from schemas.models.user import UserDoc, UserRole
from services.token_service import TokenKind, TokenService
from services.verification_service import VerificationService
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import to_epoch_ms
from shared.generators import generate_token_id
from shared.logging import get_logger

log = get_logger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    refresh_jti: str
    remember_me: bool = False


@dataclass(frozen=True)
class AuthResult:
    user: UserDoc
    tokens: SessionTokens


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        refresh_tokens: RefreshTokenRepository,
        verification: VerificationService,
        tokens: TokenService,
        email_sender: EmailSender,
        settings: AppSettings,
    ) -> None:
        self._users = users
        self._refresh_tokens = refresh_tokens
        self._verification = verification
        self._tokens = tokens
        self._email = email_sender
        self._settings = settings

    # ── Helpers ──────────────────────────────────────────────────────────────

    def verification_link(self, code_id: ObjectId) -> str:
        return f"{self._settings.app_url.rstrip('/')}/auth/email/verify/{code_id}"

    def client_url(self, path: str, **params: Any) -> str:
        url = f"{self._settings.client_url.rstrip('/')}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    async def _send_verification_link(self, user: UserDoc, resend: bool = False) -> None:
        if resend:
            code = await self._verification.resend_verification_code(user.id)
        else:
            code = await self._verification.create_verification_code(
                user.id, VerificationCodeType.EMAIL_VERIFICATION
            )
        await self._email.send_verification_email(
            user.email, self.verification_link(code.id)
        )

    async def _issue_session(self, user: UserDoc, remember_me: bool) -> SessionTokens:
        user_id = str(user.id)
        access = self._tokens.sign_token(user_id, TokenKind.ACCESS)
        refresh_kind = TokenKind.REMEMBER_REFRESH if remember_me else TokenKind.REFRESH
        refresh = self._tokens.sign_token(user_id, refresh_kind, jti=generate_token_id())
        await self._refresh_tokens.create(
            refresh.jti, user.id, remember_me, refresh.expires_at
        )
        return SessionTokens(
            access_token=access.token,
            refresh_token=refresh.token,
            refresh_jti=refresh.jti,
            remember_me=remember_me,
        )

    async def _require_user(self, user_id: Any) -> UserDoc:
        oid = parse_object_id(user_id)
        user = await self._users.find_by_id(oid) if oid is not None else None
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ── Registration & email verification ────────────────────────────────────

    async def register(self, data: RegisterRequest) -> UserDoc:
        if await self._users.find_by_email(data.email) is not None:
            raise ConflictError("User with that email already exists", field="email")

        user = await self._users.create(
            UserDoc(
                username=data.username,
                email=data.email,
                password_hash=hash_password(data.password),
                is_email_confirmed=False,
            )
        )
        log.info("user_registered", user_id=str(user.id))
        try:
            await self._send_verification_link(user)
        except EmailDeliveryError as e:
            raise EmailDeliveryError(
                "Account created but the verification email could not be sent. "
                "Request a new one via /auth/email/resend"
            ) from e
        return user

    async def resend_verification(self, email: str) -> None:
        user = await self._users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_email_confirmed:
            raise ConflictError("Email is already verified", field="email")
        await self._send_verification_link(user, resend=True)

    async def first_step_verification(self, verification_id: str) -> Optional[UserDoc]:
        """Redeem an emailed verification link and mail an OTP.

        Returns None for an unknown, expired or already used link; the caller
        redirects to the error page instead of failing.
        """
        code = await self._verification.consume_verification_code(
            verification_id, VerificationCodeType.EMAIL_VERIFICATION
        )
        if code is None:
            log.info("verification_link_rejected", verification_id=verification_id)
            return None

        user = await self._users.find_by_id(code.user_id)
        if user is None:
            log.warning("verification_link_orphaned", user_id=str(code.user_id))
            return None

        otp_code = await self._verification.generate_otp_code(user.email)
        try:
            await self._email.send_verification_otp(user.email, otp_code)
        except EmailDeliveryError:
            await self._verification.restore_verification_code(code)
            raise
        return user

    async def second_step_verification(
        self, email: str, otp_code: str, remember_me: bool = False
    ) -> AuthResult:
        await self._verification.verify_otp(email, otp_code)

        user = await self._users.mark_email_confirmed(email)
        if user is None:
            raise NotFoundError("User not found")

        tokens = await self._issue_session(user, remember_me)
        log.info("email_verified", user_id=str(user.id))
        return AuthResult(user=user, tokens=tokens)

    # ── Sessions ─────────────────────────────────────────────────────────────

    async def login(
        self, email: str, password: str, remember_me: bool = False
    ) -> AuthResult:
        user = await self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash or ""):
            log.info("login_failed", email=email)
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)

        if not user.is_email_confirmed:
            await self._send_verification_link(user)
            raise EmailNotVerifiedError(
                f"Email is not verified. A new verification email has been sent to {user.email}"
            )

        tokens = await self._issue_session(user, remember_me)
        log.info("user_logged_in", user_id=str(user.id), remember_me=remember_me)
        return AuthResult(user=user, tokens=tokens)

    async def refresh_user_access_token(self, refresh_token: Optional[str]) -> AuthResult:
        """Rotate a refresh token.

        A token whose jti is unknown or already revoked is treated as stolen:
        every refresh token of its owner is revoked.
        """
        if not refresh_token:
            raise TokenMissingError("Refresh token is missing")

        claims = self._tokens.verify_token(
            refresh_token, TokenKind.REFRESH
        ).claims_or_raise()
        jti = claims["jti"]
        user_id = parse_object_id(claims.get("sub"))
        if user_id is None:
            raise TokenInvalidError("Authentication token is invalid")

        record = await self._refresh_tokens.find_by_jti(jti)
        if record is None or record.revoked_at is not None or record.user_id != user_id:
            revoked = await self._refresh_tokens.revoke_all_for_user(user_id)
            log.warning("refresh_token_reuse_detected", user_id=str(user_id), revoked=revoked)
            raise TokenInvalidError("Refresh token has been revoked")

        user = await self._users.find_by_id(user_id)
        if user is None:
            await self._refresh_tokens.revoke(jti)
            raise NotFoundError("User not found")

        tokens = await self._issue_session(user, record.remember_me)
        if not await self._refresh_tokens.revoke(jti, replaced_by=tokens.refresh_jti):
            # A concurrent request rotated the same token first
            await self._refresh_tokens.revoke_all_for_user(user_id)
            log.warning("refresh_token_reuse_detected", user_id=str(user_id))
            raise TokenInvalidError("Refresh token has been revoked")

        log.info("refresh_token_rotated", user_id=str(user_id))
        return AuthResult(user=user, tokens=tokens)

    async def logout(
        self, refresh_token: Optional[str] = None, user_id: Optional[str] = None
    ) -> None:
        """Revoke the presented refresh token, or every token of *user_id*."""
        if refresh_token:
            verification = self._tokens.verify_token(refresh_token, TokenKind.REFRESH)
            if verification.ok:
                await self._refresh_tokens.revoke(verification.claims["jti"])
                log.info("user_logged_out", user_id=verification.claims.get("sub"))
                return

        oid = parse_object_id(user_id)
        if oid is not None:
            revoked = await self._refresh_tokens.revoke_all_for_user(oid)
            log.info("user_logged_out", user_id=user_id, revoked=revoked)

    # ── Passwords ────────────────────────────────────────────────────────────

    async def reset_user_password(
        self, user_id: str, old_password: str, new_password: str, confirm_password: str
    ) -> None:
        user = await self._require_user(user_id)
        if not verify_password(old_password, user.password_hash or ""):
            raise InvalidCredentialsError("Old password is incorrect", field="oldPassword")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirmPassword")

        await self._users.set_password_hash(user.id, hash_password(new_password))
        await self._refresh_tokens.revoke_all_for_user(user.id)
        log.info("password_changed", user_id=str(user.id))

    async def send_password_reset_url(self, email: str) -> None:
        user = await self._users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        if await self._verification.password_reset_requested_recently(user.id):
            raise RateLimitError(
                "A password reset link was sent recently. Please try again in a few minutes"
            )

        code = await self._verification.create_verification_code(
            user.id, VerificationCodeType.PASSWORD_RESET
        )
        link = self.client_url(
            "/password/reset", code=str(code.id), exp=to_epoch_ms(code.expires_at)
        )
        await self._email.send_reset_password_url(user.email, link)
        log.info("password_reset_requested", user_id=str(user.id))

    async def reset_forgotten_password(self, code_id: str, new_password: str) -> UserDoc:
        code = await self._verification.consume_verification_code(
            code_id, VerificationCodeType.PASSWORD_RESET
        )
        if code is None:
            raise CodeInvalidError(
                "Invalid or expired verification code", field="verificationCode"
            )

        user = await self._require_user(code.user_id)
        await self._users.set_password_hash(user.id, hash_password(new_password))
        await self._refresh_tokens.revoke_all_for_user(user.id)
        log.info("password_reset_completed", user_id=str(user.id))
        return user

    # ── Federated login & profile ────────────────────────────────────────────

    async def login_with_google(self, profile: dict[str, Any]) -> AuthResult:
        """Log in (or sign up) from normalised Google userinfo."""
        google_id = profile.get("provider_user_id")
        email = profile.get("email")
        if not google_id or not email:
            raise ValidationError("Google account has no email address")

        user = await self._users.find_by_google_id(google_id)
        if user is None:
            existing = await self._users.find_by_email(email)
            if existing is not None:
                fields: dict[str, Any] = {"google_id": google_id}
                if profile.get("email_verified"):
                    fields["is_email_confirmed"] = True
                if not existing.image and profile.get("picture"):
                    fields["image"] = profile["picture"]
                user = await self._users.update_fields(existing.id, fields)
                log.info("google_account_linked", user_id=str(existing.id))
            else:
                user = await self._users.create(
                    UserDoc(
                        email=email,
                        google_id=google_id,
                        image=profile.get("picture") or None,
                        is_email_confirmed=True,
                        role=UserRole.GUEST,
                    )
                )
                log.info("user_registered", user_id=str(user.id), provider="google")

        if user is None:
            raise NotFoundError("User not found")

        tokens = await self._issue_session(user, remember_me=False)
        log.info("user_logged_in", user_id=str(user.id), provider="google")
        return AuthResult(user=user, tokens=tokens)

    async def get_current_user(self, user_id: str) -> UserDoc:
        return await self._require_user(user_id)
