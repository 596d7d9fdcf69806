"""Authentication service: password hashing, login sessions and caller resolution.

Sessions are JWTs (python-jose) carrying the user's email and a session id.
The session id must still be registered in Redis for the token to resolve,
so logout revokes a token before it expires.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.db.models import UserModel
from app.db.redis_cache import get_redis_cache
from app.db.redis_db import RedisKeyPrefix
from app.repositories.user import normalize_email, user_repository
from app.settings import settings
from app.utils import generate_id

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """Resolved identity of the party making a request."""

    email: str
    role: str = ROLE_USER
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: UserModel) -> "Caller":
        return cls(email=user.email, role=user.role or ROLE_USER, name=user.name or "")


def is_admin(caller: Caller | None) -> bool:
    """True iff the caller resolved and holds the admin role."""
    return caller is not None and caller.is_admin


# ==================== Passwords ====================


def get_password_hash(password: str) -> str:
    """Hash password using bcrypt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against a bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def authenticate_user(db: Session, email: str, password: str) -> UserModel | None:
    """Authenticate user by email and password.

    Returns:
        User object if authentication successful, None otherwise
    """
    user = user_repository.get_by_email(db, email)
    if not user:
        return None
    if not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ==================== Admin Promotion ====================


def role_for_email(email: str) -> str:
    """Role a brand-new account with this email starts with."""
    return ROLE_ADMIN if settings.is_admin_email(email) else ROLE_USER


def ensure_admin_role(db: Session, user: UserModel) -> bool:
    """Promote an allow-listed user to admin.

    Idempotent: writes at most once, and not at all when the stored role is
    already admin.

    Returns:
        True if the user was promoted by this call
    """
    if not settings.is_admin_email(user.email) or user.role == ROLE_ADMIN:
        return False
    user_repository.set_role(db, user, ROLE_ADMIN)
    logger.info(f"Admin role assigned to: {user.email}")
    return True


# ==================== Session Tokens ====================


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token.

    Args:
        data: Payload data to encode (must include 'sub' claim with the user email)
        expires_delta: Optional custom expiration time
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.session_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict | None:
    """Decode a JWT and return its payload, or None if invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None
    if not payload.get("sub") or not payload.get("sid"):
        return None
    return payload


def create_session(user: UserModel) -> str:
    """Register a login session for `user` and return its token."""
    session_id = generate_id("sess")
    ttl = settings.session_expire_minutes * 60
    cache = get_redis_cache()
    cache.set(
        RedisKeyPrefix.session_key(session_id),
        {"email": user.email, "userId": user.id},
        expire_seconds=ttl,
    )
    cache.sadd(RedisKeyPrefix.session_index_key(user.email), session_id)
    logger.info(f"Session created for {user.email}")
    return create_access_token({"sub": user.email, "sid": session_id})


def revoke_session(token: str | None) -> bool:
    """Revoke the session behind `token`.

    Returns:
        True if an active session was removed
    """
    if not token:
        return False
    payload = verify_token(token)
    if payload is None:
        return False
    cache = get_redis_cache()
    cache.srem(RedisKeyPrefix.session_index_key(payload["sub"]), payload["sid"])
    return cache.delete(RedisKeyPrefix.session_key(payload["sid"]))


def resolve_session(db: Session, token: str | None) -> Caller | None:
    """Resolve a session token to the caller, reading the role fresh from the database."""
    if not token:
        return None
    payload = verify_token(token)
    if payload is None:
        return None

    session = get_redis_cache().get(RedisKeyPrefix.session_key(payload["sid"]))
    if not session or normalize_email(session.get("email")) != normalize_email(payload["sub"]):
        logger.debug("Session token refers to a revoked or unknown session")
        return None

    user = user_repository.get_by_email(db, payload["sub"])
    if user is None:
        return None
    return Caller.from_user(user)


def resolve_caller(db: Session, token: str | None = None, email: str | None = None) -> Caller | None:
    """Resolve who is calling.

    Prefers an authenticated session; falls back to looking up a supplied
    email. Returns None when neither identifies a known user; callers must
    treat None as unauthenticated.
    """
    caller = resolve_session(db, token)
    if caller is not None:
        return caller

    if email:
        user = user_repository.get_by_email(db, email)
        if user is not None:
            return Caller.from_user(user)
    return None


def new_oauth_state() -> str:
    """Random value binding an OAuth redirect to its callback."""
    state = secrets.token_urlsafe(24)
    get_redis_cache().set(RedisKeyPrefix.oauth_state_key(state), {"issued": True}, expire_seconds=600)
    return state


def consume_oauth_state(state: str | None) -> bool:
    """Check and invalidate an OAuth state value (single use)."""
    if not state:
        return False
    return get_redis_cache().delete(RedisKeyPrefix.oauth_state_key(state))
