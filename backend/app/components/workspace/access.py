"""Access-control policy for workspace and admin operations.

A pure decision function: (caller, workspace, operation) -> allow/deny.

| Operation              | Admin | Owner | Member | Other |
|------------------------|-------|-------|--------|-------|
| READ                   | yes   | yes   | yes    | no    |
| VIEW_ADMIN             | yes   | no    | no     | no    |
| CREATE                 | yes   | -     | yes    | yes   |
| UPDATE_GOALS           | yes   | yes   | yes    | no    |
| MANAGE_ATTACHMENTS     | yes   | yes   | yes    | no    |
| ADD_MEMBER             | yes   | yes   | no     | no    |
| DELETE                 | yes   | yes   | no     | no    |

Unresolved callers are denied everything. Ownerless legacy workspaces can
only be managed (members, deletion) by admins.
"""

from enum import Enum

from app.components.workspace.models import Workspace
from app.exceptions import ForbiddenError
from app.services.auth_service import Caller


class WorkspaceOperation(str, Enum):
    READ = "read"
    VIEW_ADMIN = "view_admin"
    CREATE = "create"
    UPDATE_GOALS = "update_goals"
    MANAGE_ATTACHMENTS = "manage_attachments"
    ADD_MEMBER = "add_member"
    DELETE = "delete"


_MEMBER_OPERATIONS = {
    WorkspaceOperation.READ,
    WorkspaceOperation.UPDATE_GOALS,
    WorkspaceOperation.MANAGE_ATTACHMENTS,
}

_OWNER_OPERATIONS = _MEMBER_OPERATIONS | {
    WorkspaceOperation.ADD_MEMBER,
    WorkspaceOperation.DELETE,
}

_DENIAL_MESSAGES = {
    WorkspaceOperation.VIEW_ADMIN: "Admin access required",
    WorkspaceOperation.ADD_MEMBER: "Only workspace owners or admins can add members",
    WorkspaceOperation.DELETE: "Only workspace owners or admins can delete workspaces",
}


def is_owner(caller: Caller | None, workspace: Workspace | None) -> bool:
    if caller is None or workspace is None or not workspace.owner:
        return False
    return workspace.owner.lower() == caller.email.lower()


def is_member(caller: Caller | None, workspace: Workspace | None) -> bool:
    if caller is None or workspace is None:
        return False
    return caller.email.lower() in {m.lower() for m in workspace.members}


def is_allowed(caller: Caller | None, workspace: Workspace | None, operation: WorkspaceOperation) -> bool:
    """Decide whether `caller` may perform `operation` on `workspace`."""
    if caller is None:
        return False
    if caller.is_admin:
        return True
    if operation == WorkspaceOperation.VIEW_ADMIN:
        return False
    if operation == WorkspaceOperation.CREATE:
        return True
    if is_owner(caller, workspace):
        return operation in _OWNER_OPERATIONS
    if is_member(caller, workspace):
        return operation in _MEMBER_OPERATIONS
    return False


def enforce(caller: Caller | None, workspace: Workspace | None, operation: WorkspaceOperation) -> None:
    """Raise ForbiddenError unless the operation is allowed."""
    if not is_allowed(caller, workspace, operation):
        message = _DENIAL_MESSAGES.get(operation, "You do not have access to this workspace")
        raise ForbiddenError(message)
