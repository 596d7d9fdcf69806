"""Repository layer for database access.

This module provides repository classes that abstract database operations.

Usage:
    from app.repositories import workspace_repository, user_repository

    workspace = workspace_repository.get_workspace(db, workspace_id)
    workspace = workspace_repository.replace_goals(db, workspace_id, goals)
"""

from app.repositories.activity import ActivityRepository, activity_repository
from app.repositories.user import UserRepository, normalize_email, user_repository
from app.repositories.workspace import WorkspaceRepository, workspace_repository

__all__ = [
    "UserRepository",
    "user_repository",
    "normalize_email",
    "WorkspaceRepository",
    "workspace_repository",
    "ActivityRepository",
    "activity_repository",
]
