"""Google OAuth redirect flow (mounted at /auth, outside the /api prefix)."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_request_context
from app.api.endpoints.auth import set_session_cookie
from app.db.database import get_db
from app.exceptions import AppError
from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext
from app.services.auth_service import ROLE_ADMIN, consume_oauth_state, create_session, new_oauth_state
from app.services.google_oauth import build_authorization_url, fetch_profile, upsert_google_user
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_STATE_COOKIE = "onecre_oauth_state"


def _redirect_uri(request: Request) -> str:
    return str(request.base_url).rstrip("/") + settings.google_redirect_path


def _frontend(path: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}{path}"


@router.get("/google")
def google_login(request: Request):
    """Send the browser to Google's consent screen."""
    state = new_oauth_state()
    url = build_authorization_url(_redirect_uri(request), state)
    response = RedirectResponse(url, status_code=302)
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Finish sign-in and redirect to the admin panel or the dashboard."""
    if error or not code:
        logger.warning(f"Google callback without code: error={error}")
        return RedirectResponse(_frontend(f"/?error={error or 'no_code'}"), status_code=302)

    cookie_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state or state != cookie_state or not consume_oauth_state(state):
        logger.warning("Google callback with invalid state")
        return RedirectResponse(_frontend("/?error=invalid_state"), status_code=302)

    try:
        profile = await fetch_profile(code, _redirect_uri(request))
        user = upsert_google_user(db, profile)
    except AppError as e:
        logger.error(f"Google sign-in failed: {e.message}")
        return RedirectResponse(_frontend("/?error=oauth_failed"), status_code=302)

    logger.info(f"OAuth success for user: {user.email}, role={user.role}")
    token = create_session(user)
    target = "/admin" if user.role == ROLE_ADMIN else "/dashboard"
    response = RedirectResponse(_frontend(target), status_code=302)
    set_session_cookie(response, token)
    response.delete_cookie(OAUTH_STATE_COOKIE)

    background_tasks.add_task(
        activity_service.record,
        ActivityType.LOGIN,
        user.email,
        "User logged in with Google",
        {"role": user.role, "loginMethod": "google_oauth"},
        context,
    )
    return response
