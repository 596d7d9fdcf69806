"""Activity repository - append-only audit log storage."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import ActivityModel
from app.repositories.base import BaseRepository
from app.utils import generate_id, get_timestamp_ms


class ActivityRepository(BaseRepository[ActivityModel]):
    """Repository for Activity records.

    Rows are only ever inserted; there is no update or delete path.
    """

    def __init__(self):
        super().__init__(ActivityModel)

    def append(
        self,
        db: Session,
        type: str,
        actor: str,
        description: str,
        metadata: dict[str, Any] | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        created_at: int | None = None,
    ) -> ActivityModel:
        """Insert one activity row and commit."""
        return self.create(
            db,
            {
                "id": generate_id("act"),
                "type": type,
                "actor": actor,
                "description": description,
                "details": metadata or {},
                "ip": ip,
                "user_agent": user_agent,
                "created_at": created_at if created_at is not None else get_timestamp_ms(),
            },
        )

    @staticmethod
    def _criteria(
        types: Iterable[str] | None = None,
        actor: str | None = None,
        since_ms: int | None = None,
        until_ms: int | None = None,
    ) -> list:
        criteria = []
        if types:
            criteria.append(ActivityModel.type.in_(list(types)))
        if actor:
            criteria.append(ActivityModel.actor == actor)
        if since_ms is not None:
            criteria.append(ActivityModel.created_at >= since_ms)
        if until_ms is not None:
            criteria.append(ActivityModel.created_at < until_ms)
        return criteria

    def query(
        self,
        db: Session,
        types: Iterable[str] | None = None,
        actor: str | None = None,
        since_ms: int | None = None,
        until_ms: int | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ActivityModel], int]:
        """Filtered page of activities, newest first.

        Returns:
            (items, total_count) - total_count ignores limit/offset
        """
        criteria = self._criteria(types, actor, since_ms, until_ms)

        stmt = select(ActivityModel)
        count_stmt = select(func.count()).select_from(ActivityModel)
        if criteria:
            stmt = stmt.where(*criteria)
            count_stmt = count_stmt.where(*criteria)

        stmt = stmt.order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc()).offset(offset).limit(limit)
        items = list(db.execute(stmt).scalars().all())
        total = int(db.execute(count_stmt).scalar_one())
        return items, total

    def count_by_type(
        self,
        db: Session,
        types: Iterable[str],
        since_ms: int | None = None,
        until_ms: int | None = None,
    ) -> dict[str, int]:
        """Number of activities per type within the window (missing types count 0)."""
        types = list(types)
        stmt = select(ActivityModel.type, func.count()).group_by(ActivityModel.type)
        criteria = self._criteria(types, None, since_ms, until_ms)
        if criteria:
            stmt = stmt.where(*criteria)
        counts = {type_: 0 for type_ in types}
        for type_, count in db.execute(stmt).all():
            counts[type_] = int(count)
        return counts


# Singleton instance
activity_repository = ActivityRepository()
