"""Workspace API endpoints.

Mutations answer as soon as the aggregate is written; notification emails
and activity records run afterwards as background tasks.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import get_current_caller, get_optional_caller, get_request_context
from app.components.workspace import service as workspace_service
from app.components.workspace.attachments import attachment_manager
from app.components.workspace.models import AddMemberRequest, CreateWorkspaceRequest, ReplaceGoalsRequest, Workspace
from app.db.database import get_db
from app.exceptions import ValidationError
from app.models.schemas import DeleteWorkspaceResponse, WorkspaceResponse
from app.services.activity_service import RequestContext
from app.services.auth_service import Caller, resolve_caller
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{email}", response_model=list[Workspace])
def list_workspaces(
    email: str,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Workspaces the given user is a member of."""
    return workspace_service.list_member_workspaces(db, caller, email)


@router.post("", response_model=WorkspaceResponse)
def create_workspace(
    body: CreateWorkspaceRequest,
    background_tasks: BackgroundTasks,
    caller: Caller | None = Depends(get_optional_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Create a workspace; the caller becomes owner and a member."""
    if caller is None and body.creatorEmail:
        caller = resolve_caller(db, email=body.creatorEmail)
    logger.info(f"POST /api/workspaces: name={body.name}, creator={caller.email if caller else None}")

    workspace = workspace_service.create_workspace(db, caller, body, context, background_tasks)
    return WorkspaceResponse(message="Workspace created", workspace=workspace)


@router.put("/{workspace_id}", response_model=WorkspaceResponse)
def replace_goals(
    workspace_id: str,
    body: ReplaceGoalsRequest,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Replace the whole goals tree of a workspace."""
    logger.info(f"PUT /api/workspaces/{workspace_id}: goals={len(body.goals)}, caller={caller.email}")
    workspace = workspace_service.update_goals(db, caller, workspace_id, body.goals, context, background_tasks)
    return WorkspaceResponse(workspace=workspace)


@router.delete("/{workspace_id}", response_model=DeleteWorkspaceResponse)
def delete_workspace(
    workspace_id: str,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Delete a workspace and its attachment files (owner or admin)."""
    logger.info(f"DELETE /api/workspaces/{workspace_id}: caller={caller.email}")
    result = workspace_service.delete_workspace(db, caller, workspace_id, context, background_tasks)
    return DeleteWorkspaceResponse(
        message="Workspace deleted",
        deletedFiles=result.deletedFiles,
        failedFiles=result.failedFiles,
    )


@router.post("/{workspace_id}/add-member", response_model=WorkspaceResponse)
def add_member(
    workspace_id: str,
    body: AddMemberRequest,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Add a user who has completed Google sign-in."""
    logger.info(f"POST /api/workspaces/{workspace_id}/add-member: email={body.email}, caller={caller.email}")
    workspace = workspace_service.add_member(db, caller, workspace_id, body.email, context, background_tasks)
    return WorkspaceResponse(workspace=workspace)


@router.post("/{workspace_id}/tasks/{task_id}/attachments", response_model=WorkspaceResponse)
def upload_attachment(
    workspace_id: str,
    task_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile | None = File(None),
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Upload a file (multipart field ``file``) and attach it to a task."""
    logger.info(f"POST /api/workspaces/{workspace_id}/tasks/{task_id}/attachments: caller={caller.email}")
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    # One byte past the cap is enough to reject without buffering the rest
    content = file.file.read(settings.max_upload_bytes + 1)
    workspace = attachment_manager.upload(
        db, caller, workspace_id, task_id, content, file.filename, context, background_tasks
    )
    return WorkspaceResponse(workspace=workspace)


@router.delete("/{workspace_id}/tasks/{task_id}/attachments/{file_name}", response_model=WorkspaceResponse)
def remove_attachment(
    workspace_id: str,
    task_id: str,
    file_name: str,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Detach a file from a task; the stored file is deleted best-effort."""
    logger.info(f"DELETE /api/workspaces/{workspace_id}/tasks/{task_id}/attachments/{file_name}")
    workspace = attachment_manager.remove(db, caller, workspace_id, task_id, file_name, context, background_tasks)
    return WorkspaceResponse(workspace=workspace)
