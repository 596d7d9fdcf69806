"""Admin dashboard API endpoints (read-only, admin role required)."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.components.workspace.models import Workspace
from app.db.database import get_db
from app.models.auth_schemas import AdminUserResponse
from app.repositories.user import user_repository
from app.repositories.workspace import workspace_repository
from app.services import activity_service
from app.services.activity_service import ActivityPage
from app.services.auth_service import Caller
from app.services.stats_service import DashboardStats, get_dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=list[AdminUserResponse])
def list_users(caller: Caller = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info(f"GET /api/admin/users: admin={caller.email}")
    return [
        AdminUserResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            googleLinked=bool(user.google_id),
            createdAt=user.created_at,
        )
        for user in user_repository.get_all(db)
    ]


@router.get("/workspaces", response_model=list[Workspace])
def list_workspaces(caller: Caller = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info(f"GET /api/admin/workspaces: admin={caller.email}")
    return workspace_repository.list_all(db)


@router.get("/activities", response_model=ActivityPage)
def list_activities(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    types: str | None = Query(None, description="Comma-separated activity types"),
    since: int | None = Query(None, description="Only activities at or after this epoch-ms timestamp"),
    caller: Caller = Depends(require_admin),
):
    """Newest-first page of the activity log."""
    type_list = [t.strip() for t in types.split(",") if t.strip()] if types else None
    return activity_service.query(types=type_list, since_ms=since, limit=limit, offset=offset)


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(caller: Caller = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info(f"GET /api/admin/stats: admin={caller.email}")
    return get_dashboard_stats(db)
