"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan and
stored on app.state; these providers only hand them out, so tests can place
fakes on app.state or use app.dependency_overrides.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    TokenMissingError,
    ValidationError,
)
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.cookie_service import CookieService
from services.file_service import FileService
from services.request_service import RequestService
from services.token_service import TokenKind, TokenService
from services.user_service import UserService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


# ── Services ─────────────────────────────────────────────────────────────────


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_cookie_service(request: Request) -> CookieService:
    return request.app.state.cookie_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_request_service(request: Request) -> RequestService:
    return request.app.state.request_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_oauth(request: Request):
    """Return the Authlib OAuth registry, or None when Google is not configured."""
    return getattr(request.app.state, "oauth", None)


# ── Auth ─────────────────────────────────────────────────────────────────────


def get_bearer_token(request: Request) -> str:
    """Extract the access token from ``Authorization: Bearer <token>``.

    Missing header -> 401, anything but a two-part Bearer header -> 400.
    """
    header: Optional[str] = request.headers.get("Authorization")
    if not header:
        raise TokenMissingError("Authorization header is missing")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip() or " " in token.strip():
        raise ValidationError("Invalid Authorization format", field="authorization")
    return token.strip()


async def get_current_user_id(
    token: str = Depends(get_bearer_token),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    claims = tokens.verify_token(token, TokenKind.ACCESS).claims_or_raise()
    return claims["sub"]


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> UserDoc:
    try:
        return await auth.get_current_user(user_id)
    except NotFoundError as e:
        raise AuthenticationError("User for this token no longer exists") from e


async def require_admin(user: UserDoc = Depends(get_current_user)) -> UserDoc:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


async def get_optional_user_id(
    request: Request, tokens: TokenService = Depends(get_token_service)
) -> Optional[str]:
    """User id from a valid bearer token, or None. Never raises."""
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    verification = tokens.verify_token(token.strip(), TokenKind.ACCESS)
    return verification.claims["sub"] if verification.ok else None
