"""Tests for the workspace access-control policy."""

import pytest

from app.components.workspace.access import WorkspaceOperation, enforce, is_allowed
from app.components.workspace.models import Workspace
from app.exceptions import ForbiddenError
from app.services.auth_service import Caller, is_admin

OWNER = Caller(email="owner@x.com")
MEMBER = Caller(email="member@x.com")
STRANGER = Caller(email="stranger@x.com")
ADMIN = Caller(email="root@x.com", role="admin")


@pytest.fixture
def workspace() -> Workspace:
    return Workspace(
        id="ws_1",
        name="Sprint",
        owner="owner@x.com",
        members=["member@x.com", "owner@x.com"],
        createdAt=0,
        updatedAt=0,
    )


@pytest.fixture
def legacy_workspace() -> Workspace:
    return Workspace(id="ws_old", name="Old", owner=None, members=["member@x.com"], createdAt=0, updatedAt=0)


class TestDecisionTable:
    @pytest.mark.parametrize(
        "operation",
        [
            WorkspaceOperation.READ,
            WorkspaceOperation.UPDATE_GOALS,
            WorkspaceOperation.MANAGE_ATTACHMENTS,
            WorkspaceOperation.ADD_MEMBER,
            WorkspaceOperation.DELETE,
        ],
    )
    def test_owner_and_admin_may_do_everything(self, workspace, operation):
        assert is_allowed(OWNER, workspace, operation)
        assert is_allowed(ADMIN, workspace, operation)

    def test_member_may_edit_but_not_manage(self, workspace):
        assert is_allowed(MEMBER, workspace, WorkspaceOperation.READ)
        assert is_allowed(MEMBER, workspace, WorkspaceOperation.UPDATE_GOALS)
        assert is_allowed(MEMBER, workspace, WorkspaceOperation.MANAGE_ATTACHMENTS)
        assert not is_allowed(MEMBER, workspace, WorkspaceOperation.ADD_MEMBER)
        assert not is_allowed(MEMBER, workspace, WorkspaceOperation.DELETE)

    def test_stranger_is_denied(self, workspace):
        for operation in WorkspaceOperation:
            if operation == WorkspaceOperation.CREATE:
                continue
            assert not is_allowed(STRANGER, workspace, operation)

    def test_unresolved_caller_is_denied_everything(self, workspace):
        for operation in WorkspaceOperation:
            assert not is_allowed(None, workspace, operation)

    def test_only_admin_views_admin_dashboard(self):
        assert is_allowed(ADMIN, None, WorkspaceOperation.VIEW_ADMIN)
        assert not is_allowed(OWNER, None, WorkspaceOperation.VIEW_ADMIN)

    def test_any_resolved_caller_may_create(self):
        assert is_allowed(STRANGER, None, WorkspaceOperation.CREATE)

    def test_ownership_is_case_insensitive(self, workspace):
        assert is_allowed(Caller(email="Owner@X.com"), workspace, WorkspaceOperation.DELETE)

    def test_legacy_workspace_managed_by_admin_only(self, legacy_workspace):
        assert not is_allowed(MEMBER, legacy_workspace, WorkspaceOperation.DELETE)
        assert not is_allowed(MEMBER, legacy_workspace, WorkspaceOperation.ADD_MEMBER)
        assert is_allowed(MEMBER, legacy_workspace, WorkspaceOperation.UPDATE_GOALS)
        assert is_allowed(ADMIN, legacy_workspace, WorkspaceOperation.DELETE)


class TestEnforce:
    def test_denial_raises_forbidden_with_message(self, workspace):
        with pytest.raises(ForbiddenError, match="Only workspace owners or admins can delete"):
            enforce(MEMBER, workspace, WorkspaceOperation.DELETE)

    def test_allowed_returns_none(self, workspace):
        assert enforce(OWNER, workspace, WorkspaceOperation.DELETE) is None

    def test_is_admin(self):
        assert is_admin(ADMIN)
        assert not is_admin(OWNER)
        assert not is_admin(None)
