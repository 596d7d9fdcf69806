"""Authentication API endpoints: password sign-up/sign-in, logout, session probe."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.orm import Session

from app.api.deps import get_request_context, get_session_caller, get_session_token
from app.db.database import get_db
from app.exceptions import AuthenticationError, ConflictError, ValidationError
from app.models.auth_schemas import (
    CurrentUserResponse,
    SigninResponse,
    SignupResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.models.schemas import MessageResponse
from app.repositories.user import normalize_email, user_repository
from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext
from app.services.auth_service import (
    Caller,
    authenticate_user,
    create_session,
    ensure_admin_role,
    get_password_hash,
    revoke_session,
    role_for_email,
)
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/signup", response_model=SignupResponse)
def signup(
    body: UserRegister,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Register a new email/password account."""
    email = normalize_email(body.email)
    logger.info(f"POST /api/signup: email={email}")

    name = body.name.strip()
    if not name:
        raise ValidationError("Name is required")
    if user_repository.get_by_email(db, email):
        raise ConflictError("User already exists")

    user = user_repository.create_user(
        db,
        name=name,
        email=email,
        hashed_password=get_password_hash(body.password),
        role=role_for_email(email),
    )

    background_tasks.add_task(
        activity_service.record,
        ActivityType.SIGNUP,
        email,
        f"New user registered: {name}",
        {"role": user.role, "signupMethod": "email_password"},
        context,
    )
    return SignupResponse(message="User registered successfully", user=UserResponse.model_validate(user))


@router.post("/signin", response_model=SigninResponse)
def signin(
    body: UserLogin,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Check credentials, apply admin promotion and open a session."""
    email = normalize_email(body.email)
    logger.info(f"POST /api/signin: email={email}")

    if not email or not body.password:
        raise ValidationError("Email and password are required")

    user = authenticate_user(db, email, body.password)
    if user is None:
        raise AuthenticationError("Invalid email or password")

    ensure_admin_role(db, user)
    token = create_session(user)
    set_session_cookie(response, token)

    background_tasks.add_task(
        activity_service.record,
        ActivityType.LOGIN,
        user.email,
        "User logged in successfully",
        {"role": user.role, "loginMethod": "email_password"},
        context,
    )
    return SigninResponse(user=UserResponse.model_validate(user), accessToken=token)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, token: str | None = Depends(get_session_token)):
    """Revoke the current session, if any, and clear the cookie."""
    revoked = revoke_session(token)
    response.delete_cookie(settings.session_cookie_name)
    logger.info(f"POST /api/logout: revoked={revoked}")
    return MessageResponse(message="Logged out")


@router.get("/current_user", response_model=CurrentUserResponse)
def current_user(caller: Caller = Depends(get_session_caller)):
    """Identity behind the session cookie or bearer token."""
    return CurrentUserResponse(name=caller.name, email=caller.email, role=caller.role)
