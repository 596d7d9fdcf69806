"""Task-assignment diffing between two snapshots of one workspace.

Given the aggregate before and after a goals replacement, yields one
``AssignmentChange`` per task whose trimmed ``assignedTo`` is non-empty and
differs from its previous value. Tasks that did not exist before count as
previously unassigned. Unassigning never produces a change.

Tasks are matched by id, so a client that regenerates ids for untouched
tasks makes every assigned one look newly assigned.
"""

from collections.abc import Iterator
from datetime import date

from pydantic import BaseModel

from app.components.workspace.models import Workspace
from app.components.workspace.tree import iter_tasks


class AssignmentChange(BaseModel):
    """A task that gained (or changed) its assignee."""

    taskId: str
    taskTitle: str
    oldAssignee: str
    newAssignee: str
    dueDate: date | None = None


def _assignment_index(workspace: Workspace | None) -> dict[str, str]:
    """Map task id -> trimmed assignee for one snapshot."""
    if workspace is None:
        return {}
    return {task.id: (task.assignedTo or "").strip() for task in iter_tasks(workspace.goals) if task.id is not None}


def diff_assignments(old: Workspace | None, new: Workspace) -> Iterator[AssignmentChange]:
    """Lazily yield the assignment changes from `old` to `new`.

    Args:
        old: Snapshot before the write (None is treated as an empty workspace)
        new: Snapshot after the write
    """
    previous = _assignment_index(old)

    for task in iter_tasks(new.goals):
        new_assignee = (task.assignedTo or "").strip()
        if not new_assignee:
            continue
        old_assignee = previous.get(task.id, "") if task.id is not None else ""
        if new_assignee != old_assignee:
            yield AssignmentChange(
                taskId=task.id or "",
                taskTitle=task.title,
                oldAssignee=old_assignee,
                newAssignee=new_assignee,
                dueDate=task.endDate,
            )
