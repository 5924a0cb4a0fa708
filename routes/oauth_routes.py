"""
Google login.

GET /oauth/google            redirect to Google's consent screen
GET /oauth/google/callback   exchange the code, open a session, redirect to
                             the client; the client then calls /auth/refresh
                             with the refresh cookie to obtain an access token
"""

from __future__ import annotations

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from config import AppSettings
from dependencies import get_auth_service, get_cookie_service, get_oauth, get_settings
from errors import NotFoundError
from infrastructure.oauth_clients import extract_user_info_from_google
from services.auth_service import AuthService
from services.cookie_service import CookieService
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])


def _google_client(oauth):
    client = oauth.create_client("google") if oauth is not None else None
    if client is None:
        raise NotFoundError("Google login is not configured")
    return client


@router.get("/google")
async def google_login(
    request: Request,
    oauth=Depends(get_oauth),
    settings: AppSettings = Depends(get_settings),
):
    client = _google_client(oauth)
    redirect_uri = settings.oauth.google_oauth_redirect_uri or str(
        request.url_for("google_callback")
    )
    return await client.authorize_redirect(request, redirect_uri)


@router.get("/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    oauth=Depends(get_oauth),
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> RedirectResponse:
    client = _google_client(oauth)
    try:
        token = await client.authorize_access_token(request)
        userinfo = token.get("userinfo") or await client.userinfo(token=token)
    except OAuthError as e:
        log.warning("oauth_callback_failed", provider="google", error=e.error)
        return RedirectResponse(
            auth.client_url("/login", error="oauth_failed"), status_code=303
        )

    result = await auth.login_with_google(extract_user_info_from_google(dict(userinfo)))
    response = RedirectResponse(auth.client_url("/oauth/success"), status_code=303)
    cookies.set_refresh_cookie(response, result.tokens.refresh_token, remember_me=False)
    return response
