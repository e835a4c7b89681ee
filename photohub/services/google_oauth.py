"""Google OAuth2 authorization-code flow over httpx.

The CSRF ``state`` is a short-lived signed token, so no server-side state
table is needed.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlencode

import httpx

from photohub.core.config import get_settings
from photohub.core.errors import ServiceUnavailableError, UnauthorizedError
from photohub.core.security import OAUTH_STATE, create_purpose_token, decode_purpose_token
from photohub.services.auth import decode_or_raise

logger = logging.getLogger(__name__)
settings = get_settings()

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = "openid email profile"


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    name: str


def authorization_url(role: str | None = None) -> str:
    claims = {"role": role} if role else {}
    state = create_purpose_token(OAUTH_STATE, claims, timedelta(minutes=10))
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def verify_state(state: str) -> dict:
    """Return the claims carried in ``state`` (e.g. a pre-chosen role)."""
    return decode_or_raise(decode_purpose_token, state, OAUTH_STATE)


async def fetch_profile(code: str, client: httpx.AsyncClient | None = None) -> GoogleProfile:
    """Exchange an authorization code and read the verified email + name."""
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        token_resp = await client.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if token_resp.status_code != 200:
            logger.warning("Google code exchange failed: %s", token_resp.status_code)
            raise UnauthorizedError("Google sign-in failed")
        access_token = token_resp.json()["access_token"]

        info_resp = await client.get(
            USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"},
        )
        info_resp.raise_for_status()
        info = info_resp.json()
    except httpx.HTTPError as exc:
        logger.error("Google OAuth request failed: %s", exc)
        raise ServiceUnavailableError("Google sign-in is unavailable") from exc
    finally:
        if owns_client:
            await client.aclose()

    if not info.get("email") or not info.get("email_verified", False):
        raise UnauthorizedError("Google account email is not verified")
    return GoogleProfile(email=info["email"], name=info.get("name") or info["email"].split("@")[0])
