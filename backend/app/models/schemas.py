"""Pydantic response models for the HTTP API.

Aggregate and request models live in ``app.components.workspace.models``;
the ones here only shape responses.
"""

from typing import Any

from pydantic import BaseModel

from app.components.workspace.models import Workspace


class MessageResponse(BaseModel):
    """Uniform success envelope for mutations."""

    success: bool = True
    message: str


class WorkspaceResponse(BaseModel):
    success: bool = True
    message: str | None = None
    workspace: Workspace


class DeleteWorkspaceResponse(BaseModel):
    success: bool = True
    message: str
    deletedFiles: int
    failedFiles: int


class TestEmailRequest(BaseModel):
    testEmail: str | None = None


class TestEmailResponse(BaseModel):
    success: bool
    message: str
    messageId: str | None = None


class ErrorResponse(BaseModel):
    """Shape of every error body."""

    success: bool = False
    message: str
    error: str
    debug: Any = None


class HealthResponse(BaseModel):
    status: str
    database: bool
    redis: bool


class ServerInfoResponse(BaseModel):
    """Where the frontend should send API calls and OAuth redirects."""

    serverUrl: str
    frontendUrl: str
    port: int
    host: str
    protocol: str
