"""Refresh-token cookie handling.

The refresh token is only ever sent as an HTTP-only, SameSite=strict cookie
scoped to the refresh path, so the browser presents it to /auth/refresh and
nowhere else. The access token travels in the JSON body.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request, Response

from config import JWTSettings


class CookieService:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def read_refresh_cookie(self, request: Request) -> Optional[str]:
        return request.cookies.get(self._settings.refresh_cookie_name) or None

    def set_refresh_cookie(
        self, response: Response, token: str, remember_me: bool = False
    ) -> None:
        max_age = (
            self._settings.remember_refresh_token_ttl_seconds
            if remember_me
            else self._settings.refresh_token_ttl_seconds
        )
        response.set_cookie(
            self._settings.refresh_cookie_name,
            value=token,
            max_age=max_age,
            path=self._settings.refresh_cookie_path,
            secure=self._settings.cookie_secure,
            httponly=True,
            samesite="strict",
        )

    def clear_refresh_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self._settings.refresh_cookie_name,
            path=self._settings.refresh_cookie_path,
            secure=self._settings.cookie_secure,
            httponly=True,
            samesite="strict",
        )
