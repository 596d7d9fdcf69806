"""Database connection and session management.

This module provides the SQLAlchemy engine, request-scoped sessions and a
context manager for work that runs outside a request (background tasks).

Usage:
    from app.db.database import get_db, get_db_session

    async def my_endpoint(db: Session = Depends(get_db)):
        db.execute(select(WorkspaceModel))

    with get_db_session() as db:
        db.add(row)
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.settings import settings
from app.utils import get_logger

logger = get_logger(__name__)


def _build_database_url() -> str:
    """Build database connection URL from settings.

    Supports both SQLite and MySQL based on settings.database_type.
    """
    url = settings.get_database_url_auto()

    # Convert mysql:// to mysql+pymysql:// if needed
    if url.startswith("mysql://"):
        url = url.replace("mysql://", "mysql+pymysql://", 1)

    return url


_database_url = _build_database_url()

_is_sqlite = _database_url.startswith("sqlite")
_engine_kwargs = {
    "echo": False,
}

if _is_sqlite:
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in _database_url:
        # One shared connection so every session sees the same in-memory database
        _engine_kwargs["poolclass"] = StaticPool
    logger.info(f"Using SQLite database: {_database_url}")
else:
    _engine_kwargs.update(
        {
            "pool_size": settings.mysql_pool_size,
            "max_overflow": settings.mysql_max_overflow,
            "pool_pre_ping": settings.mysql_pool_pre_ping,
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        }
    )
    logger.info(f"Using MySQL database: {_database_url.split('@')[1] if '@' in _database_url else 'unknown'}")

engine: Engine = create_engine(_database_url, **_engine_kwargs)


if _is_sqlite:

    @event.listens_for(engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """SQLite only enforces ON DELETE CASCADE with foreign_keys enabled."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

else:

    @event.listens_for(engine, "connect")
    def set_connection_timeout(dbapi_connection, connection_record):
        """Set connection timeout for MySQL."""
        cursor = dbapi_connection.cursor()
        cursor.execute("SET SESSION wait_timeout = 28800")  # 8 hours
        cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Get database session for dependency injection.

    Example:
        @router.get("/workspaces")
        async def list_workspaces(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Get database session as context manager.

    Commits on success, rolls back on error.

    Usage:
        with get_db_session() as db:
            db.add(row)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_connection() -> bool:
    """Check if database connection is working."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


def init_db() -> None:
    """Create tables if they do not exist. Called during application startup."""
    from app.db.models import Base

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def reset_db() -> None:
    """Drop and recreate all tables (tests and local resets only)."""
    from app.db.models import Base

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables reset")


def close_db() -> None:
    """Close database connections. Called during application shutdown."""
    engine.dispose()
    logger.info("Database connections closed")
