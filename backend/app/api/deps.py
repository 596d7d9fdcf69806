"""Shared FastAPI dependencies: database session and caller resolution."""

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.exceptions import AuthenticationError, ForbiddenError
from app.services.activity_service import RequestContext
from app.services.auth_service import Caller, resolve_caller, resolve_session
from app.settings import settings

# Optional security: the session may also arrive as a cookie
optional_security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
) -> str | None:
    """Session token from the Authorization header, else from the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def get_optional_caller(
    fallback_email: str | None = Query(
        None, alias="email", description="Identity fallback when no session is present"
    ),
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Caller | None:
    """Session identity, else the user named by ``?email=``, else None."""
    return resolve_caller(db, token, fallback_email)


def get_current_caller(caller: Caller | None = Depends(get_optional_caller)) -> Caller:
    if caller is None:
        raise AuthenticationError("Authentication required")
    return caller


def get_session_caller(
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Caller:
    """Session-only identity (no email fallback)."""
    caller = resolve_session(db, token)
    if caller is None:
        raise AuthenticationError("Not authenticated")
    return caller


def require_admin(caller: Caller | None = Depends(get_optional_caller)) -> Caller:
    if caller is None:
        raise AuthenticationError("Authentication required")
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")
    return caller


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_request(request)
