"""Workspace data models.

Defines the workspace aggregate and everything nested inside it:
- Workspace: aggregate root (name, owner, members, goals)
- Goal: priority-tagged container of milestones
- Milestone: ordered container of tasks
- Task: unit of work with assignee, dates and attachments
- Attachment: uploaded file bound to a task

Nested entities have no identity outside their workspace; ids are only
unique within one aggregate.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class GoalPriority(str, Enum):
    """Goal priority."""

    high = "High"
    medium = "Medium"
    low = "Low"


class Attachment(BaseModel):
    """File attached to a task.

    ``fileName`` is the server-generated name inside the content store;
    ``originalName`` is display-only.
    """

    fileName: str
    originalName: str
    url: str


class Task(BaseModel):
    """Task - leaf of the goal tree.

    ``status`` is a free-form label; the UI uses "Not Started",
    "In Progress" and "Done".
    """

    id: str | None = None  # Assigned by the server when missing
    title: str = ""
    status: str = "Not Started"
    assignedTo: str = ""
    userStories: str = ""
    startDate: date | None = None
    endDate: date | None = None
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("assignedTo", "userStories", "status", "title", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        # Clients send "YYYY-MM-DD", full ISO timestamps or empty strings
        if value in (None, ""):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value


class Milestone(BaseModel):
    """Milestone - ordered list of tasks."""

    id: str | None = None
    title: str = ""
    tasks: list[Task] = Field(default_factory=list)


class Goal(BaseModel):
    """Goal - top level of the tree."""

    id: str | None = None
    title: str = ""
    priority: GoalPriority = GoalPriority.medium
    milestones: list[Milestone] = Field(default_factory=list)


class Workspace(BaseModel):
    """Workspace aggregate root.

    Invariant: ``owner``, when present, is one of ``members``.
    """

    id: str
    name: str
    owner: str | None = None  # None for legacy records
    members: list[str] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    createdAt: int
    updatedAt: int


# Request models


class CreateWorkspaceRequest(BaseModel):
    """Request to create a workspace."""

    name: str = ""
    members: list[str] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    # Identity fallback for callers without a session
    creatorEmail: str | None = None


class ReplaceGoalsRequest(BaseModel):
    """Full-tree replacement of a workspace's goals."""

    goals: list[Goal]


class AddMemberRequest(BaseModel):
    """Request to add a member to a workspace."""

    email: str | None = None
