"""Tests for Repository layer.

These tests use the in-memory SQLite database configured for the test
environment, so no MySQL server is required.
"""

import pytest
from sqlalchemy.orm import Session

from app.components.workspace.models import Attachment, Goal, Milestone, Task
from app.db.models import UserModel
from app.exceptions import NotFoundError, ValidationError
from app.repositories.activity import activity_repository
from app.repositories.base import BaseRepository
from app.repositories.user import user_repository
from app.repositories.workspace import normalize_members, workspace_repository
from app.utils import get_timestamp_ms


class TestBaseRepository:
    """Test BaseRepository CRUD operations."""

    def test_create_get_update(self, db: Session):
        repo = BaseRepository(UserModel)
        now = get_timestamp_ms()

        user = repo.create(db, {"id": "user_test001", "name": "Test", "email": "t@example.com", "created_at": now})
        assert repo.get_by_id(db, "user_test001").email == "t@example.com"

        repo.update(db, user, {"name": "Renamed"})
        renamed = repo.get_by_id(db, "user_test001")
        assert renamed.name == "Renamed"
        assert renamed.updated_at >= now

    def test_update_rejects_unknown_column(self, db: Session, make_user):
        user = make_user("a@example.com")

        with pytest.raises(AttributeError):
            user_repository.update(db, user, {"nickname": "x"})

    def test_count_and_get_all(self, db: Session, make_user):
        make_user("a@example.com")
        make_user("b@example.com")

        assert user_repository.count(db) == 2
        assert {u.email for u in user_repository.get_all(db)} == {"a@example.com", "b@example.com"}


class TestUserRepository:
    def test_email_lookup_is_case_insensitive(self, db: Session, make_user):
        make_user("Alice@Example.com")

        assert user_repository.get_by_email(db, "ALICE@example.COM").email == "alice@example.com"

    def test_verified_lookup_requires_google_id(self, db: Session, make_user):
        make_user("linked@example.com", verified=True)
        make_user("plain@example.com", verified=False)

        assert user_repository.get_verified_by_email(db, "linked@example.com") is not None
        assert user_repository.get_verified_by_email(db, "plain@example.com") is None


class TestWorkspaceRepository:
    def test_normalize_members(self):
        assert normalize_members(["B@x.com", "", "b@x.com", "c@x.com"], "Owner@x.com") == [
            "b@x.com",
            "c@x.com",
            "owner@x.com",
        ]

    def test_create_includes_owner_and_dedupes(self, db: Session):
        ws = workspace_repository.create_workspace(db, "Sprint", "Owner@x.com", ["a@x.com", "A@x.com"])

        assert ws.owner == "owner@x.com"
        assert ws.members == ["a@x.com", "owner@x.com"]
        assert ws.id.startswith("ws_")

    def test_create_requires_name(self, db: Session):
        with pytest.raises(ValidationError):
            workspace_repository.create_workspace(db, "   ", "owner@x.com")

    def test_get_missing_workspace(self, db: Session):
        with pytest.raises(NotFoundError):
            workspace_repository.get_workspace(db, "ws_missing")

    def test_replace_goals_is_full_replacement(self, db: Session, sample_goals):
        ws = workspace_repository.create_workspace(db, "Sprint", "o@x.com", goals=sample_goals)

        replacement = [Goal(id="g2", title="Other", milestones=[Milestone(id="m9", tasks=[Task(id="t9")])])]
        updated = workspace_repository.replace_goals(db, ws.id, replacement)

        assert [g.id for g in updated.goals] == ["g2"]
        assert [t.id for t in updated.goals[0].milestones[0].tasks] == ["t9"]
        assert workspace_repository.get_workspace(db, ws.id).goals == updated.goals

    def test_replace_goals_on_missing_workspace(self, db: Session, sample_goals):
        with pytest.raises(NotFoundError):
            workspace_repository.replace_goals(db, "ws_missing", sample_goals)

    def test_failed_replace_leaves_old_tree(self, db: Session, sample_goals):
        """A rejected tree writes nothing: callers never see a half-applied replace."""
        ws = workspace_repository.create_workspace(db, "Sprint", "o@x.com", goals=sample_goals)
        bad = [
            Goal(id="g1", milestones=[Milestone(id="m1", tasks=[Task(id="dup"), Task(id="dup")])]),
        ]

        with pytest.raises(ValidationError):
            workspace_repository.replace_goals(db, ws.id, bad)

        assert workspace_repository.get_workspace(db, ws.id).goals == sample_goals

    def test_list_for_member(self, db: Session):
        workspace_repository.create_workspace(db, "One", "o@x.com", ["m@x.com"])
        workspace_repository.create_workspace(db, "Two", "other@x.com")

        assert [w.name for w in workspace_repository.list_for_member(db, "M@X.com")] == ["One"]
        assert workspace_repository.list_for_member(db, "") == []

    def test_add_member_requires_verified_user(self, db: Session, make_user):
        make_user("unverified@x.com", verified=False)
        ws = workspace_repository.create_workspace(db, "Sprint", "o@x.com")

        with pytest.raises(ValidationError, match="sign in with Google"):
            workspace_repository.add_member(db, ws.id, "unverified@x.com")

        assert workspace_repository.get_workspace(db, ws.id).members == ["o@x.com"]

    def test_add_member_is_idempotent(self, db: Session, make_user):
        make_user("new@x.com")
        ws = workspace_repository.create_workspace(db, "Sprint", "o@x.com")

        _, added_first = workspace_repository.add_member(db, ws.id, "New@x.com")
        updated, added_second = workspace_repository.add_member(db, ws.id, "new@x.com")

        assert added_first is True
        assert added_second is False
        assert updated.members == ["o@x.com", "new@x.com"]

    def test_delete_returns_attachment_names(self, db: Session):
        goals = [
            Goal(
                id="g1",
                milestones=[
                    Milestone(
                        id="m1",
                        tasks=[
                            Task(
                                id="t1",
                                attachments=[
                                    Attachment(fileName="a.txt", originalName="a.txt", url="/uploads/a.txt"),
                                    Attachment(fileName="b.txt", originalName="b.txt", url="/uploads/b.txt"),
                                ],
                            )
                        ],
                    )
                ],
            )
        ]
        ws = workspace_repository.create_workspace(db, "Sprint", "o@x.com", goals=goals)

        assert workspace_repository.delete_workspace(db, ws.id) == ["a.txt", "b.txt"]
        assert workspace_repository.find(db, ws.id) is None
        assert workspace_repository.list_for_member(db, "o@x.com") == []


class TestActivityRepository:
    def test_query_newest_first_with_total(self, db: Session):
        for i in range(5):
            activity_repository.append(db, "login", f"u{i}@x.com", "logged in", created_at=1000 + i)

        items, total = activity_repository.query(db, limit=2, offset=1)

        assert total == 5
        assert [a.created_at for a in items] == [1003, 1002]

    def test_query_filters(self, db: Session):
        activity_repository.append(db, "login", "a@x.com", "", created_at=100)
        activity_repository.append(db, "signup", "a@x.com", "", created_at=200)
        activity_repository.append(db, "member_added", "b@x.com", "", created_at=300)

        items, total = activity_repository.query(db, types=["login", "signup"], since_ms=150)
        assert total == 1
        assert items[0].type == "signup"

        items, _ = activity_repository.query(db, actor="b@x.com")
        assert [a.type for a in items] == ["member_added"]

    def test_count_by_type(self, db: Session):
        activity_repository.append(db, "login", "a@x.com", "", created_at=100)
        activity_repository.append(db, "login", "b@x.com", "", created_at=200)

        assert activity_repository.count_by_type(db, ["login", "signup"]) == {"login": 2, "signup": 0}
