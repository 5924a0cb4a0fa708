"""Google OAuth client initialisation and profile extraction.

Authlib's Starlette integration keeps the OAuth state in the session, so
create_app() installs SessionMiddleware whenever a client is registered here.
"""

from typing import Any, Dict, Optional

from authlib.integrations.starlette_client import OAuth

from config import OAuthProviderSettings
from shared.logging import get_logger

log = get_logger(__name__)

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"


def init_oauth(settings: OAuthProviderSettings) -> Optional[OAuth]:
    """Register the Google client. Returns None when it is not configured."""
    if not (settings.google_oauth_client_id and settings.google_oauth_client_secret):
        log.warning("oauth_no_providers_configured")
        return None

    oauth = OAuth()
    oauth.register(
        name="google",
        client_id=settings.google_oauth_client_id,
        client_secret=settings.google_oauth_client_secret,
        server_metadata_url=GOOGLE_METADATA_URL,
        client_kwargs={
            "scope": "openid email profile",
            "prompt": "select_account",
        },
    )
    log.info("oauth_provider_initialized", provider="google")
    return oauth


def extract_user_info_from_google(userinfo: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise Google's OIDC userinfo into the fields the auth service uses."""
    return {
        "provider_user_id": str(userinfo.get("sub", "")),
        "email": (userinfo.get("email") or "").lower().strip(),
        "email_verified": bool(userinfo.get("email_verified", False)),
        "name": userinfo.get("name", ""),
        "picture": userinfo.get("picture", ""),
    }
