"""Google OAuth 2.0 (authorization code flow) client and account linking.

The handshake itself is a thin httpx wrapper; ``upsert_google_user`` applies
the account rules:
1. a user already linked to the Google id is reused
2. otherwise an account with the same email gets the Google id linked
3. otherwise a new OAuth-only account is created
Admin promotion is applied in every case.
"""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.models import UserModel
from app.exceptions import UpstreamUnavailableError, ValidationError
from app.repositories.user import normalize_email, user_repository
from app.services.auth_service import ensure_admin_role, role_for_email
from app.settings import settings

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


class GoogleProfile(BaseModel):
    """Subset of the Google userinfo response we rely on."""

    id: str
    email: str | None = None
    name: str = ""


def _require_configured() -> None:
    if not settings.is_google_oauth_configured():
        raise UpstreamUnavailableError("Google sign-in is not configured")


def build_authorization_url(redirect_uri: str, state: str) -> str:
    """URL of Google's consent screen for the profile+email scopes."""
    _require_configured()
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid profile email",
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def fetch_profile(code: str, redirect_uri: str) -> GoogleProfile:
    """Exchange an authorization code and fetch the user's profile.

    Raises:
        UpstreamUnavailableError: Google rejected the code or is unreachable
    """
    _require_configured()
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            token_resp = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            token_resp.raise_for_status()
            access_token = token_resp.json()["access_token"]

            info_resp = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info_resp.raise_for_status()
            info = info_resp.json()
    except (httpx.HTTPError, KeyError) as e:
        logger.error(f"Google OAuth exchange failed: {e}")
        raise UpstreamUnavailableError("Google sign-in failed") from e

    return GoogleProfile(id=str(info.get("sub") or info.get("id")), email=info.get("email"), name=info.get("name") or "")


def upsert_google_user(db: Session, profile: GoogleProfile) -> UserModel:
    """Find, link or create the account for a Google profile.

    Raises:
        ValidationError: the profile carries no email
    """
    email = normalize_email(profile.email)
    if not email:
        raise ValidationError("No email found in Google profile")

    user = user_repository.get_by_google_id(db, profile.id)
    if user is None:
        user = user_repository.get_by_email(db, email)
        if user is not None:
            updates = {"google_id": profile.id}
            if not user.name:
                updates["name"] = profile.name
            user = user_repository.update(db, user, updates)
            logger.info(f"Linked Google account to existing user: {email}")
        else:
            user = user_repository.create_user(
                db,
                name=profile.name,
                email=email,
                google_id=profile.id,
                role=role_for_email(email),
            )
            logger.info(f"Created user from Google sign-in: {email}")

    ensure_admin_role(db, user)
    return user
