#!/usr/bin/env python
"""
pytest configuration file

This file contains shared fixtures for all tests. Environment variables are
set before any ``app`` module is imported so the settings singleton picks up
the in-memory database, fakeredis and a throwaway workspace directory.
"""

import os
import tempfile

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_TYPE"] = "sqlite"
os.environ["REDIS_TYPE"] = "fake"
os.environ["WORKSPACE_ROOT"] = tempfile.mkdtemp(prefix="onecre-test-")
os.environ["ADMIN_EMAILS"] = '["admin@example.com"]'
os.environ["EMAIL_DEV_MODE"] = "false"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.components.workspace.models import Goal, Milestone, Task  # noqa: E402
from app.db.database import SessionLocal, reset_db  # noqa: E402
from app.db.models import UserModel  # noqa: E402
from app.db.redis_cache import get_redis_cache  # noqa: E402
from app.main import app  # noqa: E402
from app.repositories.user import user_repository  # noqa: E402
from app.services.auth_service import Caller, create_session, get_password_hash  # noqa: E402
from app.services.email_service import EmailNotifier  # noqa: E402
from app.services.filesystem import FileSystemService  # noqa: E402
from app.settings import settings  # noqa: E402

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(autouse=True)
def clean_state():
    """Fresh tables and an empty session registry for every test."""
    reset_db()
    get_redis_cache().flush_db()
    yield


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create test client with app context."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db: Session):
    """Factory for persisted users; `verified` links a Google identity."""

    def _make_user(
        email: str,
        name: str = "",
        password: str | None = "secret123",
        verified: bool = True,
        role: str = "user",
    ) -> UserModel:
        return user_repository.create_user(
            db,
            name=name or email.split("@")[0],
            email=email,
            hashed_password=get_password_hash(password) if password else None,
            google_id=f"google-{email}" if verified else None,
            role=role,
        )

    return _make_user


@pytest.fixture
def admin(make_user) -> UserModel:
    return make_user(ADMIN_EMAIL, name="Admin", role="admin")


@pytest.fixture
def auth_headers():
    """Bearer header for a live session of `user`."""

    def _auth_headers(user: UserModel) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session(user)}"}

    return _auth_headers


@pytest.fixture
def caller_for():
    def _caller_for(user: UserModel) -> Caller:
        return Caller.from_user(user)

    return _caller_for


@pytest.fixture
def sample_goals() -> list[Goal]:
    """One goal, one milestone, two tasks."""
    return [
        Goal(
            id="g1",
            title="Launch",
            milestones=[
                Milestone(
                    id="m1",
                    title="Beta",
                    tasks=[
                        Task(id="t1", title="Write docs"),
                        Task(id="t2", title="Fix bugs", assignedTo="dev@example.com"),
                    ],
                )
            ],
        )
    ]


class FakeSMTP:
    """Stand-in for smtplib.SMTP recording every sent message."""

    def __init__(self, outbox: list, fail: bool = False):
        self.outbox = outbox
        self.fail = fail

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def noop(self):
        return (250, b"OK")

    def send_message(self, msg):
        if self.fail:
            raise OSError("connection reset")
        self.outbox.append(msg)


@pytest.fixture
def outbox(monkeypatch) -> list:
    """Configure SMTP and capture outgoing messages instead of sending them."""
    sent: list = []
    monkeypatch.setattr(settings, "smtp_username", "noreply@example.com")
    monkeypatch.setattr(settings, "smtp_password", "app-password")
    monkeypatch.setattr(settings, "email_dev_mode", False)
    monkeypatch.setattr(EmailNotifier, "_open_transport", lambda self: FakeSMTP(sent))
    return sent


@pytest.fixture
def store(tmp_path) -> FileSystemService:
    """Content store rooted in a per-test directory."""
    service = FileSystemService(root=tmp_path / "uploads")
    service.root.mkdir(parents=True, exist_ok=True)
    return service
