"""Activity log service.

Appending is fire-and-forget: ``record`` never raises, so audit failures can
never fail or block the operation being observed. It opens its own database
session because it usually runs as a background task after the response.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from app.db.database import get_db_session
from app.db.models import ActivityModel
from app.repositories.activity import activity_repository
from app.repositories.user import normalize_email
from app.utils import get_logger

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"

# Per-user notification feed size
NOTIFICATION_LIMIT = 20


class ActivityType(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    PROFILE_UPDATE = "profile_update"
    WORKSPACE_CREATED = "workspace_created"
    WORKSPACE_UPDATED = "workspace_updated"
    WORKSPACE_DELETED = "workspace.deleted"
    MEMBER_ADDED = "member_added"
    FILE_UPLOADED = "file_uploaded"
    ATTACHMENT_REMOVED = "task.attachment_removed"


@dataclass(frozen=True)
class RequestContext:
    """Where an action came from."""

    ip: str = SYSTEM_ACTOR
    user_agent: str = SYSTEM_ACTOR

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(ip=get_client_ip(request), user_agent=request.headers.get("User-Agent", "unknown"))


def get_client_ip(request: Request) -> str:
    """Get client IP address from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


class ActivityItem(BaseModel):
    id: str
    type: str
    user: str
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    ip: str | None = None
    userAgent: str | None = None

    @classmethod
    def from_row(cls, row: ActivityModel) -> "ActivityItem":
        return cls(
            id=row.id,
            type=row.type,
            user=row.actor,
            description=row.description,
            metadata=row.details or {},
            timestamp=row.created_at,
            ip=row.ip,
            userAgent=row.user_agent,
        )


class ActivityPage(BaseModel):
    activities: list[ActivityItem]
    totalCount: int
    hasMore: bool


class Notification(BaseModel):
    id: str
    type: str
    message: str
    timestamp: int
    metadata: dict[str, Any] = Field(default_factory=dict)
    read: bool = False


def record(
    type: ActivityType | str,
    actor: str | None,
    description: str,
    metadata: dict[str, Any] | None = None,
    context: RequestContext | None = None,
) -> None:
    """Append one activity. Failures are logged and swallowed."""
    type_value = type.value if isinstance(type, ActivityType) else str(type)
    context = context or RequestContext()
    try:
        with get_db_session() as db:
            activity_repository.append(
                db,
                type=type_value,
                actor=actor or SYSTEM_ACTOR,
                description=description,
                metadata=metadata,
                ip=context.ip,
                user_agent=context.user_agent,
            )
        logger.info(f"Activity logged: {type_value} - {actor or SYSTEM_ACTOR} - {description}")
    except Exception as e:
        logger.error(f"Failed to log activity {type_value} for {actor}: {e}")


def query(
    types: list[str] | None = None,
    actor: str | None = None,
    since_ms: int | None = None,
    until_ms: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> ActivityPage:
    """Filtered, newest-first page of the log."""
    limit = max(1, min(limit, 500))
    offset = max(0, offset)
    with get_db_session() as db:
        rows, total = activity_repository.query(
            db,
            types=types,
            actor=actor,
            since_ms=since_ms,
            until_ms=until_ms,
            limit=limit,
            offset=offset,
        )
        items = [ActivityItem.from_row(row) for row in rows]
    return ActivityPage(activities=items, totalCount=total, hasMore=offset + limit < total)


def notifications_for(email: str) -> list[Notification]:
    """Feed of "you were added to a workspace" entries for one user."""
    page = query(
        types=[ActivityType.MEMBER_ADDED.value],
        actor=normalize_email(email),
        limit=NOTIFICATION_LIMIT,
    )
    return [
        Notification(
            id=item.id,
            type=item.type,
            message=item.description,
            timestamp=item.timestamp,
            metadata=item.metadata,
        )
        for item in page.activities
    ]
