"""Attachment lifecycle for tasks inside a workspace aggregate.

Upload order: size check, locate the task, store the bytes, rewrite the
aggregate. Removal order: rewrite the aggregate, then delete the bytes on a
best-effort basis. The aggregate is the source of truth; a file left behind
by a failed physical delete is an orphan, never a dangling reference.
"""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.components.workspace.access import WorkspaceOperation, enforce
from app.components.workspace.models import Attachment, Workspace
from app.components.workspace.service import defer, require_caller
from app.components.workspace.tree import find_task, task_directory
from app.exceptions import NotFoundError, PayloadTooLargeError, ValidationError
from app.repositories.workspace import workspace_repository
from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext
from app.services.auth_service import Caller
from app.services.filesystem import FileSystemService, filesystem_service
from app.settings import settings
from app.utils import generate_upload_name

logger = logging.getLogger(__name__)


class AttachmentManager:
    """Binds content-store files to tasks."""

    def __init__(self, store: FileSystemService | None = None, max_bytes: int | None = None):
        self.store = store or filesystem_service
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes

    def _task_not_found(self, workspace: Workspace, task_id: str) -> NotFoundError:
        return NotFoundError(
            "Task not found",
            debug={"taskId": task_id, "existingTasks": task_directory(workspace.goals)},
        )

    def upload(
        self,
        db: Session,
        caller: Caller | None,
        workspace_id: str,
        task_id: str,
        content: bytes,
        original_name: str,
        context: RequestContext | None = None,
        background: BackgroundTasks | None = None,
    ) -> Workspace:
        """Store `content` and attach it to the task.

        Raises:
            PayloadTooLargeError: content exceeds the cap (nothing is written)
            NotFoundError: workspace or task absent (nothing is written)
        """
        caller = require_caller(caller)
        if len(content) > self.max_bytes:
            raise PayloadTooLargeError(f"File too large (limit is {self.max_bytes} bytes)")
        if not original_name:
            raise ValidationError("No file uploaded")

        workspace = workspace_repository.get_workspace(db, workspace_id)
        enforce(caller, workspace, WorkspaceOperation.MANAGE_ATTACHMENTS)

        task = find_task(workspace.goals, task_id)
        if task is None:
            logger.warning(f"Upload to unknown task {task_id} in workspace {workspace_id}")
            raise self._task_not_found(workspace, task_id)

        file_name = generate_upload_name(original_name)
        self.store.save(file_name, content)
        attachment = Attachment(fileName=file_name, originalName=original_name, url=self.store.url_for(file_name))
        task.attachments.append(attachment)

        try:
            updated = workspace_repository.replace_goals(db, workspace_id, workspace.goals)
        except Exception:
            # Roll the stored bytes back so the failed upload leaves no orphan
            try:
                self.store.delete(file_name)
            except OSError as e:
                logger.warning(f"Could not remove orphaned upload {file_name}: {e}")
            raise

        logger.info(f"Attachment {file_name} added to task {task_id} in workspace {workspace_id}")
        defer(
            background,
            activity_service.record,
            ActivityType.FILE_UPLOADED,
            caller.email,
            f'Uploaded "{original_name}" to task "{task.title}"',
            {"workspaceId": workspace_id, "taskId": task_id, "fileName": file_name, "size": len(content)},
            context,
        )
        return updated

    def remove(
        self,
        db: Session,
        caller: Caller | None,
        workspace_id: str,
        task_id: str,
        file_name: str,
        context: RequestContext | None = None,
        background: BackgroundTasks | None = None,
    ) -> Workspace:
        """Detach a file from the task, then try to delete it physically.

        Removing a file that is not attached is a no-op; only recorded files
        are ever deleted from the store.
        """
        caller = require_caller(caller)
        workspace = workspace_repository.get_workspace(db, workspace_id)
        enforce(caller, workspace, WorkspaceOperation.MANAGE_ATTACHMENTS)

        task = find_task(workspace.goals, task_id)
        if task is None:
            raise self._task_not_found(workspace, task_id)

        remaining = [a for a in task.attachments if a.fileName != file_name]
        if len(remaining) == len(task.attachments):
            logger.info(f"Attachment {file_name} not on task {task_id}; nothing to remove")
            return workspace

        task.attachments = remaining
        updated = workspace_repository.replace_goals(db, workspace_id, workspace.goals)

        physically_deleted = False
        try:
            physically_deleted = self.store.delete(file_name)
        except Exception as e:
            logger.warning(f"Attachment {file_name} detached but file deletion failed: {e}")

        defer(
            background,
            activity_service.record,
            ActivityType.ATTACHMENT_REMOVED,
            caller.email,
            f'Removed attachment from task "{task.title}"',
            {
                "workspaceId": workspace_id,
                "taskId": task_id,
                "fileName": file_name,
                "fileDeleted": physically_deleted,
            },
            context,
        )
        return updated


attachment_manager = AttachmentManager()
