"""Admin dashboard statistics."""

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.components.workspace.tree import iter_tasks
from app.repositories.activity import activity_repository
from app.repositories.user import user_repository
from app.repositories.workspace import workspace_repository
from app.services.activity_service import ActivityType
from app.utils import get_timestamp_ms, ms_ago

COMPLETED_STATUSES = {"done", "completed"}
GROWTH_WINDOW_DAYS = 7
GROWTH_CAP = 99


class CurrentStats(BaseModel):
    totalUsers: int
    activeWorkspaces: int
    totalWorkspaces: int
    totalTasks: int
    completedTasks: int
    taskCompletionRate: int


class GrowthStats(BaseModel):
    userGrowth: int
    workspaceGrowth: int


class ActivityBreakdown(BaseModel):
    logins: int
    signups: int
    workspaceCreations: int
    workspaceUpdates: int


class DashboardStats(BaseModel):
    current: CurrentStats
    changes: GrowthStats
    activityBreakdown: ActivityBreakdown
    lastUpdated: int


def growth_rate(recent: int, total: int) -> int:
    """Recent additions as a percentage of the older population, capped."""
    if recent <= 0:
        return 0
    older = max(total - recent, 1)
    return min(round(recent / older * 100), GROWTH_CAP)


def get_dashboard_stats(db: Session, now_ms: int | None = None) -> DashboardStats:
    now_ms = now_ms if now_ms is not None else get_timestamp_ms()
    week_ago = ms_ago(GROWTH_WINDOW_DAYS, now_ms)
    day_ago = ms_ago(1, now_ms)

    workspaces = workspace_repository.list_all(db)
    total_users = user_repository.count(db)
    total_workspaces = len(workspaces)

    total_tasks = 0
    completed_tasks = 0
    for workspace in workspaces:
        for task in iter_tasks(workspace.goals):
            total_tasks += 1
            if (task.status or "").strip().lower() in COMPLETED_STATUSES:
                completed_tasks += 1

    breakdown = activity_repository.count_by_type(
        db,
        [
            ActivityType.LOGIN.value,
            ActivityType.SIGNUP.value,
            ActivityType.WORKSPACE_CREATED.value,
            ActivityType.WORKSPACE_UPDATED.value,
        ],
        since_ms=day_ago,
    )

    return DashboardStats(
        current=CurrentStats(
            totalUsers=total_users,
            activeWorkspaces=sum(1 for ws in workspaces if ws.members),
            totalWorkspaces=total_workspaces,
            totalTasks=total_tasks,
            completedTasks=completed_tasks,
            taskCompletionRate=round(completed_tasks / total_tasks * 100) if total_tasks else 0,
        ),
        changes=GrowthStats(
            userGrowth=growth_rate(user_repository.count_created_since(db, week_ago), total_users),
            workspaceGrowth=growth_rate(workspace_repository.count_created_since(db, week_ago), total_workspaces),
        ),
        activityBreakdown=ActivityBreakdown(
            logins=breakdown[ActivityType.LOGIN.value],
            signups=breakdown[ActivityType.SIGNUP.value],
            workspaceCreations=breakdown[ActivityType.WORKSPACE_CREATED.value],
            workspaceUpdates=breakdown[ActivityType.WORKSPACE_UPDATED.value],
        ),
        lastUpdated=now_ms,
    )
