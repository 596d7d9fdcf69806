"""Workspace business logic.

Every mutation follows the same order: access check, read the prior
snapshot, write, return. Notification and audit work is handed to
``defer`` so it runs after the HTTP response (via FastAPI ``BackgroundTasks``)
and can never fail the request.
"""

import logging
from collections.abc import Callable

from fastapi import BackgroundTasks
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.components.workspace.access import WorkspaceOperation, enforce
from app.components.workspace.diff import diff_assignments
from app.components.workspace.models import CreateWorkspaceRequest, Goal, Workspace
from app.components.workspace.tree import reconcile_attachments
from app.exceptions import AuthenticationError
from app.repositories.user import normalize_email
from app.repositories.workspace import workspace_repository
from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext
from app.services.auth_service import Caller
from app.services.email_service import dispatch_changes
from app.services.filesystem import FileSystemService, filesystem_service

logger = logging.getLogger(__name__)


def defer(background: BackgroundTasks | None, func: Callable, *args, **kwargs) -> None:
    """Run `func` after the response, or immediately when there is no request."""
    if background is not None:
        background.add_task(func, *args, **kwargs)
    else:
        func(*args, **kwargs)


def require_caller(caller: Caller | None) -> Caller:
    if caller is None:
        raise AuthenticationError("Authentication required")
    return caller


class DeleteResult(BaseModel):
    workspaceId: str
    deletedFiles: int
    failedFiles: int


# ==================== Reads ====================


def get_workspace(db: Session, caller: Caller | None, workspace_id: str) -> Workspace:
    workspace = workspace_repository.get_workspace(db, workspace_id)
    enforce(caller, workspace, WorkspaceOperation.READ)
    return workspace


def list_member_workspaces(db: Session, caller: Caller | None, email: str) -> list[Workspace]:
    """Workspaces of `email`; readable by that user or an admin."""
    caller = require_caller(caller)
    if not caller.is_admin and normalize_email(caller.email) != normalize_email(email):
        enforce(caller, None, WorkspaceOperation.VIEW_ADMIN)
    return workspace_repository.list_for_member(db, email)


# ==================== Mutations ====================


def create_workspace(
    db: Session,
    caller: Caller | None,
    request: CreateWorkspaceRequest,
    context: RequestContext | None = None,
    background: BackgroundTasks | None = None,
) -> Workspace:
    """Create a workspace owned by the caller."""
    caller = require_caller(caller)
    enforce(caller, None, WorkspaceOperation.CREATE)

    workspace = workspace_repository.create_workspace(
        db,
        name=request.name,
        owner_email=caller.email,
        members=request.members,
        goals=reconcile_attachments(list(request.goals), []),
    )

    defer(
        background,
        activity_service.record,
        ActivityType.WORKSPACE_CREATED,
        caller.email,
        f'Created workspace "{workspace.name}"',
        {"workspaceId": workspace.id, "memberCount": len(workspace.members), "members": workspace.members},
        context,
    )
    return workspace


def _after_goals_update(
    previous: Workspace,
    current: Workspace,
    actor: str,
    context: RequestContext | None,
) -> None:
    changes = list(diff_assignments(previous, current))
    if changes:
        logger.info(f"Workspace {current.id}: {len(changes)} assignment change(s), dispatching notifications")
    dispatch_changes(changes, current.name, actor)
    activity_service.record(
        ActivityType.WORKSPACE_UPDATED,
        actor,
        f'Updated goals of workspace "{current.name}"',
        {"workspaceId": current.id, "goalsCount": len(current.goals), "assignmentChanges": len(changes)},
        context,
    )


def update_goals(
    db: Session,
    caller: Caller | None,
    workspace_id: str,
    goals: list[Goal],
    context: RequestContext | None = None,
    background: BackgroundTasks | None = None,
) -> Workspace:
    """Replace the whole goals tree, then notify new assignees after the response."""
    caller = require_caller(caller)
    previous = workspace_repository.get_workspace(db, workspace_id)
    enforce(caller, previous, WorkspaceOperation.UPDATE_GOALS)

    goals = reconcile_attachments(list(goals), previous.goals)
    current = workspace_repository.replace_goals(db, workspace_id, goals)

    defer(background, _after_goals_update, previous, current, caller.email, context)
    return current


def add_member(
    db: Session,
    caller: Caller | None,
    workspace_id: str,
    email: str | None,
    context: RequestContext | None = None,
    background: BackgroundTasks | None = None,
) -> Workspace:
    """Add a verified user; adding an existing member is a no-op."""
    caller = require_caller(caller)
    workspace = workspace_repository.get_workspace(db, workspace_id)
    enforce(caller, workspace, WorkspaceOperation.ADD_MEMBER)

    workspace, added = workspace_repository.add_member(db, workspace_id, email)
    if added:
        new_member = normalize_email(email)
        defer(
            background,
            activity_service.record,
            ActivityType.MEMBER_ADDED,
            new_member,
            f'You were added to workspace "{workspace.name}" by {caller.email}',
            {
                "workspaceId": workspace.id,
                "workspaceName": workspace.name,
                "addedBy": caller.email,
                "memberCount": len(workspace.members),
            },
            context,
        )
    return workspace


def cleanup_files(file_names: list[str], store: FileSystemService | None = None) -> tuple[int, int]:
    """Best-effort physical deletion, one attempt per file.

    Returns:
        (deleted, failed) - missing files count as deleted
    """
    store = store or filesystem_service
    deleted = failed = 0
    for file_name in file_names:
        try:
            store.delete(file_name)
            deleted += 1
        except Exception as e:
            failed += 1
            logger.warning(f"Failed to delete attachment file {file_name}: {e}")
    return deleted, failed


def delete_workspace(
    db: Session,
    caller: Caller | None,
    workspace_id: str,
    context: RequestContext | None = None,
    background: BackgroundTasks | None = None,
    store: FileSystemService | None = None,
) -> DeleteResult:
    """Delete the aggregate, then every attachment file it referenced."""
    caller = require_caller(caller)
    workspace = workspace_repository.get_workspace(db, workspace_id)
    enforce(caller, workspace, WorkspaceOperation.DELETE)

    file_names = workspace_repository.delete_workspace(db, workspace_id)
    deleted, failed = cleanup_files(file_names, store)
    if failed:
        logger.warning(f"Workspace {workspace_id} deleted with {failed} orphaned file(s)")

    defer(
        background,
        activity_service.record,
        ActivityType.WORKSPACE_DELETED,
        caller.email,
        f'Deleted workspace "{workspace.name}"',
        {"workspaceId": workspace_id, "deletedFiles": deleted, "failedFiles": failed},
        context,
    )
    return DeleteResult(workspaceId=workspace_id, deletedFiles=deleted, failedFiles=failed)
