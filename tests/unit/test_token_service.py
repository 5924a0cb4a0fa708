"""Unit tests for services.token_service and services.cookie_service."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import Response

from errors import TokenExpiredError, TokenInvalidError, TokenMissingError
from services.token_service import TokenErrorKind, TokenKind, TokenVerification


def _encode(secret, **overrides):
    return jwt.encode(_claims(**overrides), secret, algorithm="HS256")


def _claims(**overrides):
    now = datetime.now(timezone.utc)
    claims = {
        "iss": "atelier-admin",
        "aud": "atelier-admin.api",
        "sub": "507f1f77bcf86cd799439011",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=5)).timestamp()),
        "type": "access",
    }
    claims.update(overrides)
    return claims


# ── Signing ───────────────────────────────────────────────────────────────────


class TestSignToken:
    def test_access_round_trip(self, token_service):
        signed = token_service.sign_token("u1", TokenKind.ACCESS)
        result = token_service.verify_token(signed.token, TokenKind.ACCESS)
        assert result.ok
        assert result.claims["sub"] == "u1"
        assert result.claims["type"] == "access"
        assert "jti" not in result.claims

    def test_refresh_carries_jti(self, token_service):
        signed = token_service.sign_token("u1", TokenKind.REFRESH, jti="j-1")
        claims = token_service.verify_token(signed.token, TokenKind.REFRESH).claims
        assert claims["jti"] == "j-1"
        assert claims["type"] == "refresh"

    def test_refresh_requires_jti(self, token_service):
        with pytest.raises(ValueError):
            token_service.sign_token("u1", TokenKind.REFRESH)

    def test_remember_me_outlives_plain_refresh(self, token_service):
        plain = token_service.sign_token("u1", TokenKind.REFRESH, jti="a")
        remember = token_service.sign_token("u1", TokenKind.REMEMBER_REFRESH, jti="b")
        assert remember.expires_at > plain.expires_at
        delta = remember.expires_at - plain.expires_at
        assert timedelta(days=22) < delta < timedelta(days=24)

    def test_remember_token_verifies_as_refresh(self, token_service):
        signed = token_service.sign_token("u1", TokenKind.REMEMBER_REFRESH, jti="b")
        assert token_service.verify_token(signed.token, TokenKind.REFRESH).ok

    def test_no_password_in_payload(self, token_service):
        signed = token_service.sign_token("u1", TokenKind.ACCESS)
        payload = jwt.decode(signed.token, options={"verify_signature": False})
        assert not any("password" in key for key in payload)

    def test_missing_secret_raises(self, settings):
        from services.token_service import TokenService

        settings.jwt.jwt_access_secret = ""
        with pytest.raises(RuntimeError):
            TokenService(settings.jwt).sign_token("u1", TokenKind.ACCESS)


# ── Secret isolation ──────────────────────────────────────────────────────────


class TestSecretIsolation:
    @pytest.mark.parametrize("sub", ["u1", "507f1f77bcf86cd799439011", "ü"])
    def test_access_token_rejected_as_refresh(self, token_service, sub):
        token = token_service.sign_token(sub, TokenKind.ACCESS).token
        result = token_service.verify_token(token, TokenKind.REFRESH)
        assert result.error is TokenErrorKind.INVALID

    @pytest.mark.parametrize("sub", ["u1", "507f1f77bcf86cd799439011", "ü"])
    def test_refresh_token_rejected_as_access(self, token_service, sub):
        token = token_service.sign_token(sub, TokenKind.REFRESH, jti="j").token
        result = token_service.verify_token(token, TokenKind.ACCESS)
        assert result.error is TokenErrorKind.INVALID

    def test_wrong_type_with_right_secret(self, token_service, settings):
        token = _encode(settings.jwt.jwt_access_secret, type="refresh", jti="j")
        result = token_service.verify_token(token, TokenKind.ACCESS)
        assert result.error is TokenErrorKind.WRONG_TYPE


# ── Failure kinds ─────────────────────────────────────────────────────────────


class TestVerifyFailures:
    @pytest.mark.parametrize("token", [None, ""])
    def test_missing(self, token_service, token):
        assert token_service.verify_token(token, TokenKind.ACCESS).error is TokenErrorKind.MISSING

    def test_expired(self, token_service, settings):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = _encode(
            settings.jwt.jwt_access_secret,
            iat=int(past.timestamp()) - 60,
            exp=int(past.timestamp()),
        )
        assert token_service.verify_token(token, TokenKind.ACCESS).error is TokenErrorKind.EXPIRED

    def test_garbage(self, token_service):
        assert token_service.verify_token("not.a.jwt", TokenKind.ACCESS).error is TokenErrorKind.INVALID

    def test_wrong_audience(self, token_service, settings):
        token = _encode(settings.jwt.jwt_access_secret, aud="someone-else")
        assert token_service.verify_token(token, TokenKind.ACCESS).error is TokenErrorKind.INVALID

    def test_refresh_without_jti_invalid(self, token_service, settings):
        token = _encode(settings.jwt.jwt_refresh_secret, type="refresh")
        assert token_service.verify_token(token, TokenKind.REFRESH).error is TokenErrorKind.INVALID


class TestClaimsOrRaise:
    @pytest.mark.parametrize(
        "kind, exc",
        [
            (TokenErrorKind.MISSING, TokenMissingError),
            (TokenErrorKind.EXPIRED, TokenExpiredError),
            (TokenErrorKind.INVALID, TokenInvalidError),
            (TokenErrorKind.WRONG_TYPE, TokenInvalidError),
        ],
    )
    def test_maps_error_kinds(self, kind, exc):
        with pytest.raises(exc):
            TokenVerification(error=kind).claims_or_raise()

    def test_returns_claims(self):
        assert TokenVerification(claims={"sub": "u1"}).claims_or_raise() == {"sub": "u1"}


# ── Cookies ───────────────────────────────────────────────────────────────────


def _set_cookie_header(response: Response) -> str:
    return response.headers["set-cookie"].lower()


class TestCookieService:
    def test_set_refresh_cookie_attributes(self, cookie_service):
        response = Response()
        cookie_service.set_refresh_cookie(response, "tok", remember_me=False)
        header = _set_cookie_header(response)
        assert header.startswith("refresh_token=tok")
        assert "httponly" in header
        assert "samesite=strict" in header
        assert "path=/auth/refresh" in header
        assert f"max-age={7 * 24 * 3600}" in header

    def test_remember_me_max_age(self, cookie_service):
        response = Response()
        cookie_service.set_refresh_cookie(response, "tok", remember_me=True)
        assert f"max-age={30 * 24 * 3600}" in _set_cookie_header(response)

    def test_secure_flag_follows_settings(self, settings):
        from services.cookie_service import CookieService

        settings.jwt.cookie_secure = True
        response = Response()
        CookieService(settings.jwt).set_refresh_cookie(response, "tok")
        assert "secure" in _set_cookie_header(response)

    def test_clear_refresh_cookie(self, cookie_service):
        response = Response()
        cookie_service.clear_refresh_cookie(response)
        header = _set_cookie_header(response)
        assert header.startswith('refresh_token=""') or header.startswith("refresh_token=;")
        assert "max-age=0" in header
        assert "path=/auth/refresh" in header
