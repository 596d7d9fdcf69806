"""Workspace Management Module.

Core data model and tree logic for workspaces:

Components:
- models.py: Workspace aggregate (Goal -> Milestone -> Task -> Attachment)
- tree.py: Traversal helpers over the goals tree
- diff.py: Task-assignment diffing between two snapshots
- access.py: Access-control policy
- service.py: Workspace mutations and their deferred side effects
- attachments.py: Attachment upload/removal

Only models, tree and diff are re-exported here; import ``service``,
``access`` and ``attachments`` from their modules directly, since they
depend on the repository and service layers.
"""

from app.components.workspace.diff import AssignmentChange, diff_assignments
from app.components.workspace.models import (
    AddMemberRequest,
    Attachment,
    CreateWorkspaceRequest,
    Goal,
    GoalPriority,
    Milestone,
    ReplaceGoalsRequest,
    Task,
    Workspace,
)
from app.components.workspace.tree import (
    assign_missing_ids,
    collect_attachment_file_names,
    count_tasks,
    find_task,
    iter_tasks,
    task_directory,
)

__all__ = [
    # Models
    "Workspace",
    "Goal",
    "GoalPriority",
    "Milestone",
    "Task",
    "Attachment",
    "CreateWorkspaceRequest",
    "ReplaceGoalsRequest",
    "AddMemberRequest",
    # Tree
    "iter_tasks",
    "find_task",
    "collect_attachment_file_names",
    "task_directory",
    "count_tasks",
    "assign_missing_ids",
    # Diff
    "AssignmentChange",
    "diff_assignments",
]
