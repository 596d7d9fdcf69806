"""Database module for the One Cre backend.

Components:
- SQL (SQLite / MySQL): users, workspace aggregates, activity log
- Redis: login session registry, OAuth handshake state
"""

from app.db.database import (
    SessionLocal,
    check_connection,
    close_db,
    engine,
    get_db,
    get_db_session,
    init_db,
    reset_db,
)
from app.db.models import (
    ActivityModel,
    Base,
    UserModel,
    WorkspaceMemberModel,
    WorkspaceModel,
)
from app.db.redis_cache import RedisCache, get_redis_cache
from app.db.redis_db import RedisKeyPrefix

__all__ = [
    # Redis
    "RedisCache",
    "RedisKeyPrefix",
    "get_redis_cache",
    # SQL - Connection
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_session",
    "init_db",
    "reset_db",
    "close_db",
    "check_connection",
    # SQL - Models
    "Base",
    "UserModel",
    "WorkspaceModel",
    "WorkspaceMemberModel",
    "ActivityModel",
]
