"""Tests for the attachment lifecycle.

Test cases:
- Upload binds the file to the located task and stores the bytes
- Unknown task: 404 with a capped task directory, nothing stored
- Size cap rejects before any mutation
- Remove detaches even when physical deletion fails
- Removing an unrecorded file never touches the store
- Upload/delete racing on the same stored name
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from app.components.workspace.attachments import AttachmentManager
from app.components.workspace.tree import find_task
from app.exceptions import ForbiddenError, NotFoundError, PayloadTooLargeError
from app.repositories.workspace import workspace_repository


@pytest.fixture
def owner(make_user):
    return make_user("owner@x.com")


@pytest.fixture
def workspace(db: Session, owner, sample_goals):
    return workspace_repository.create_workspace(db, "Sprint", owner.email, goals=sample_goals)


@pytest.fixture
def manager(store) -> AttachmentManager:
    return AttachmentManager(store=store, max_bytes=1024)


class TestUpload:
    def test_upload_attaches_to_task(self, db, manager, store, workspace, owner, caller_for):
        updated = manager.upload(db, caller_for(owner), workspace.id, "t2", b"hello", "notes v1.txt")

        task = find_task(updated.goals, "t2")
        assert len(task.attachments) == 1
        attachment = task.attachments[0]
        assert attachment.originalName == "notes v1.txt"
        assert attachment.fileName.endswith("-notes_v1.txt")
        assert attachment.url == f"/uploads/{attachment.fileName}"
        assert store.read(attachment.fileName) == b"hello"

        persisted = workspace_repository.get_workspace(db, workspace.id)
        assert find_task(persisted.goals, "t2").attachments == [attachment]

    def test_unknown_task_returns_directory(self, db, manager, store, workspace, owner, caller_for):
        with pytest.raises(NotFoundError) as exc_info:
            manager.upload(db, caller_for(owner), workspace.id, "nope", b"x", "a.txt")

        assert exc_info.value.debug["existingTasks"] == [
            {"id": "t1", "title": "Write docs"},
            {"id": "t2", "title": "Fix bugs"},
        ]
        assert list(store.root.iterdir()) == []

    def test_size_cap(self, db, manager, store, workspace, owner, caller_for):
        with pytest.raises(PayloadTooLargeError):
            manager.upload(db, caller_for(owner), workspace.id, "t1", b"x" * 1025, "big.bin")

        assert list(store.root.iterdir()) == []
        assert find_task(workspace_repository.get_workspace(db, workspace.id).goals, "t1").attachments == []

    def test_non_member_is_forbidden(self, db, manager, workspace, make_user, caller_for):
        stranger = make_user("stranger@x.com")

        with pytest.raises(ForbiddenError):
            manager.upload(db, caller_for(stranger), workspace.id, "t1", b"x", "a.txt")

    def test_failed_persist_removes_stored_file(self, db, manager, store, workspace, owner, caller_for, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("db down")

        monkeypatch.setattr(workspace_repository, "replace_goals", boom)

        with pytest.raises(RuntimeError):
            manager.upload(db, caller_for(owner), workspace.id, "t1", b"x", "a.txt")

        assert list(store.root.iterdir()) == []


class TestRemove:
    def test_remove_detaches_and_deletes(self, db, manager, store, workspace, owner, caller_for):
        caller = caller_for(owner)
        updated = manager.upload(db, caller, workspace.id, "t1", b"data", "a.txt")
        file_name = find_task(updated.goals, "t1").attachments[0].fileName

        after = manager.remove(db, caller, workspace.id, "t1", file_name)

        assert find_task(after.goals, "t1").attachments == []
        assert not store.exists(file_name)

    def test_remove_survives_physical_delete_failure(self, db, manager, store, workspace, owner, caller_for):
        caller = caller_for(owner)
        updated = manager.upload(db, caller, workspace.id, "t1", b"data", "a.txt")
        file_name = find_task(updated.goals, "t1").attachments[0].fileName
        manager.store = MagicMock(wraps=store)
        manager.store.delete.side_effect = PermissionError("read-only filesystem")

        after = manager.remove(db, caller, workspace.id, "t1", file_name)

        assert find_task(after.goals, "t1").attachments == []
        persisted = workspace_repository.get_workspace(db, workspace.id)
        assert find_task(persisted.goals, "t1").attachments == []

    def test_remove_unrecorded_file_is_noop(self, db, manager, workspace, owner, caller_for):
        manager.store = MagicMock()

        result = manager.remove(db, caller_for(owner), workspace.id, "t1", "other-task-file.txt")

        assert result.goals == workspace.goals
        manager.store.delete.assert_not_called()

    def test_remove_from_unknown_task(self, db, manager, workspace, owner, caller_for):
        with pytest.raises(NotFoundError):
            manager.remove(db, caller_for(owner), workspace.id, "nope", "a.txt")


class TestUploadDeleteRace:
    def test_delete_racing_upload_of_same_name(self, db, manager, store, workspace, owner, caller_for, monkeypatch):
        """A delete landing between store and persist leaves a record whose bytes are gone.

        Per-task attachment operations are not serialized; the aggregate keeps
        the record and the content store lags behind it.
        """
        caller = caller_for(owner)
        monkeypatch.setattr(
            "app.components.workspace.attachments.generate_upload_name",
            lambda original: "fixed-name.txt",
        )
        original_save = store.save

        def save_then_concurrent_delete(file_name, content):
            size = original_save(file_name, content)
            store.delete(file_name)
            return size

        manager.store = MagicMock(wraps=store)
        manager.store.save.side_effect = save_then_concurrent_delete
        manager.store.url_for.side_effect = store.url_for

        updated = manager.upload(db, caller, workspace.id, "t1", b"data", "a.txt")

        assert [a.fileName for a in find_task(updated.goals, "t1").attachments] == ["fixed-name.txt"]
        assert not store.exists("fixed-name.txt")

    def test_second_upload_with_same_name_overwrites_bytes(self, db, manager, store, workspace, owner, caller_for, monkeypatch):
        caller = caller_for(owner)
        monkeypatch.setattr(
            "app.components.workspace.attachments.generate_upload_name",
            lambda original: "fixed-name.txt",
        )

        manager.upload(db, caller, workspace.id, "t1", b"first", "a.txt")
        updated = manager.upload(db, caller, workspace.id, "t1", b"second", "a.txt")

        assert len(find_task(updated.goals, "t1").attachments) == 2
        assert store.read("fixed-name.txt") == b"second"
