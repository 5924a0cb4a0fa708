"""
JWT signing and verification.

Three token kinds share one claim layout but not one secret:

    ACCESS            access secret, 15 minutes
    REFRESH           refresh secret, 7 days
    REMEMBER_REFRESH  refresh secret, 30 days

Refresh tokens carry a ``jti`` that must be present in the refresh-token
ledger for the token to be honoured; this module only signs and checks the
signature, the ledger lives in the auth service.

verify_token() never raises for a bad token. It returns a TokenVerification
holding either the claims or the reason the token was rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

import jwt

from config import JWTSettings
from errors import AppError, TokenExpiredError, TokenInvalidError, TokenMissingError
from shared.datetime_utils import utcnow


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    REMEMBER_REFRESH = "remember_refresh"

    @property
    def claim_type(self) -> str:
        """Value of the ``type`` claim; both refresh kinds share ``refresh``."""
        return "access" if self is TokenKind.ACCESS else "refresh"


class TokenErrorKind(str, Enum):
    MISSING = "missing"
    EXPIRED = "expired"
    INVALID = "invalid"
    WRONG_TYPE = "wrong_type"


_ERROR_CLASSES: dict[TokenErrorKind, type[AppError]] = {
    TokenErrorKind.MISSING: TokenMissingError,
    TokenErrorKind.EXPIRED: TokenExpiredError,
    TokenErrorKind.INVALID: TokenInvalidError,
    TokenErrorKind.WRONG_TYPE: TokenInvalidError,
}

_ERROR_MESSAGES: dict[TokenErrorKind, str] = {
    TokenErrorKind.MISSING: "Authentication token is missing",
    TokenErrorKind.EXPIRED: "Authentication token has expired",
    TokenErrorKind.INVALID: "Authentication token is invalid",
    TokenErrorKind.WRONG_TYPE: "Authentication token has the wrong type",
}


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verify_token(): exactly one of claims / error is set."""

    claims: Optional[dict[str, Any]] = None
    error: Optional[TokenErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def claims_or_raise(self) -> dict[str, Any]:
        """Return the claims, or raise the AppError matching the failure."""
        if self.error is not None:
            raise _ERROR_CLASSES[self.error](_ERROR_MESSAGES[self.error])
        return self.claims or {}


@dataclass(frozen=True)
class SignedToken:
    token: str
    expires_at: datetime
    jti: Optional[str] = None


class TokenService:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def _secret(self, kind: TokenKind) -> str:
        secret = (
            self._settings.jwt_access_secret
            if kind is TokenKind.ACCESS
            else self._settings.jwt_refresh_secret
        )
        if not secret:
            raise RuntimeError(f"JWT secret for {kind.claim_type} tokens is not configured")
        return secret

    def ttl_seconds(self, kind: TokenKind) -> int:
        if kind is TokenKind.ACCESS:
            return self._settings.access_token_ttl_seconds
        if kind is TokenKind.REMEMBER_REFRESH:
            return self._settings.remember_refresh_token_ttl_seconds
        return self._settings.refresh_token_ttl_seconds

    def sign_token(
        self, user_id: str, kind: TokenKind, jti: Optional[str] = None
    ) -> SignedToken:
        if kind is not TokenKind.ACCESS and not jti:
            raise ValueError("refresh tokens require a jti")

        now = utcnow()
        expires_at = now + timedelta(seconds=self.ttl_seconds(kind))
        claims: dict[str, Any] = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "type": kind.claim_type,
        }
        if jti:
            claims["jti"] = jti
        if kind is TokenKind.REMEMBER_REFRESH:
            claims["rem"] = True

        token = jwt.encode(
            claims, self._secret(kind), algorithm=self._settings.jwt_algorithm
        )
        return SignedToken(token=token, expires_at=expires_at, jti=jti)

    def verify_token(self, token: Optional[str], kind: TokenKind) -> TokenVerification:
        """Check signature, expiry, issuer, audience and token type.

        REFRESH and REMEMBER_REFRESH verify identically.
        """
        if not token:
            return TokenVerification(error=TokenErrorKind.MISSING)
        try:
            claims = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(error=TokenErrorKind.EXPIRED)
        except jwt.InvalidTokenError:
            return TokenVerification(error=TokenErrorKind.INVALID)

        if claims.get("type") != kind.claim_type:
            return TokenVerification(error=TokenErrorKind.WRONG_TYPE)
        if kind is not TokenKind.ACCESS and not claims.get("jti"):
            return TokenVerification(error=TokenErrorKind.INVALID)
        return TokenVerification(claims=claims)
