#!/usr/bin/env python3
"""Database reset script.

Drops every table (users, workspaces, members, activity log) and recreates
the schema. Also clears the session registry in Redis. Development only.

Usage:
    cd backend
    python scripts/db_reset.py
"""

import sys

from app.db.database import reset_db
from app.db.redis_cache import get_redis_cache
from app.settings import settings
from app.utils import get_logger

logger = get_logger(__name__)


def reset_database():
    """Reset the database and the session registry."""

    # Safety check: never run against a production deployment
    if settings.environment not in ["local-dev", "test"]:
        logger.error("Database reset is only allowed in local-dev or test environment")
        logger.error(f"   Current environment: {settings.environment}")
        sys.exit(1)

    logger.info(f"Database type: {settings.database_type}")
    reset_db()

    if settings.database_type == "sqlite":
        logger.info(f"SQLite database location: {settings.get_sqlite_path()}")

    if get_redis_cache().flush_db():
        logger.info("Session registry cleared")

    logger.info("Database reset completed")


if __name__ == "__main__":
    reset_database()
