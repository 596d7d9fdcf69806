"""Traversal helpers over the Goal -> Milestone -> Task tree.

Tasks are located by id across the whole aggregate; these helpers are the
only place that walks the nesting.
"""

from collections.abc import Iterator

from app.components.workspace.models import Goal, Task
from app.exceptions import ValidationError
from app.utils import generate_id

# Cap on the task summaries returned with a "task not found" error
TASK_DIRECTORY_LIMIT = 10


def iter_tasks(goals: list[Goal]) -> Iterator[Task]:
    """Yield every task in tree order."""
    for goal in goals:
        for milestone in goal.milestones:
            yield from milestone.tasks


def find_task(goals: list[Goal], task_id: str) -> Task | None:
    """Return the first task whose id matches, or None."""
    for task in iter_tasks(goals):
        if task.id is not None and task.id == str(task_id):
            return task
    return None


def collect_attachment_file_names(goals: list[Goal]) -> list[str]:
    """Every attachment file name reachable from the tree, in tree order."""
    return [attachment.fileName for task in iter_tasks(goals) for attachment in task.attachments if attachment.fileName]


def task_directory(goals: list[Goal], limit: int = TASK_DIRECTORY_LIMIT) -> list[dict]:
    """Summaries of known tasks for diagnostics: [{id, title}, ...] capped at `limit`."""
    directory = []
    for task in iter_tasks(goals):
        if len(directory) >= limit:
            break
        directory.append({"id": task.id, "title": task.title})
    return directory


def count_tasks(goals: list[Goal]) -> int:
    return sum(1 for _ in iter_tasks(goals))


def assign_missing_ids(goals: list[Goal]) -> list[Goal]:
    """Give server ids to nodes submitted without one and reject duplicate task ids.

    Raises:
        ValidationError: if the same task id appears more than once
    """
    seen_task_ids: set[str] = set()
    for goal in goals:
        if not goal.id:
            goal.id = generate_id("goal")
        for milestone in goal.milestones:
            if not milestone.id:
                milestone.id = generate_id("milestone")
            for task in milestone.tasks:
                if not task.id:
                    task.id = generate_id("task")
                    # generate_id is time based; regenerate on the rare in-batch collision
                    while task.id in seen_task_ids:
                        task.id = generate_id("task")
                elif task.id in seen_task_ids:
                    raise ValidationError(f"Duplicate task id in goals tree: {task.id}")
                seen_task_ids.add(task.id)
    return goals


def reconcile_attachments(goals: list[Goal], recorded_goals: list[Goal]) -> list[Goal]:
    """Swap each submitted attachment for the record already stored on the workspace.

    Attachments come into existence only through an upload, so a submitted
    tree may keep, move or drop recorded attachments but never introduce one.

    Raises:
        ValidationError: an attachment is not recorded on this workspace, or
            the same file is listed twice
    """
    recorded = {
        attachment.fileName: attachment for task in iter_tasks(recorded_goals) for attachment in task.attachments
    }
    seen: set[str] = set()
    for task in iter_tasks(goals):
        for index, attachment in enumerate(task.attachments):
            known = recorded.get(attachment.fileName)
            if known is None:
                raise ValidationError(f"Unknown attachment: {attachment.fileName}")
            if attachment.fileName in seen:
                raise ValidationError(f"Attachment listed more than once: {attachment.fileName}")
            seen.add(attachment.fileName)
            task.attachments[index] = known.model_copy()
    return goals
