"""Base repository shared by the user, workspace and activity repositories.

Rows are keyed by string ids and carry epoch-ms ``created_at`` columns, so
listing is always in creation order. There is no generic delete: users are
never removed, activities are append-only, and workspace deletion has its own
cascade in ``WorkspaceRepository``.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import Base
from app.utils import get_timestamp_ms

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: type[ModelType]):
        self.model = model

    def get_by_id(self, db: Session, id: str) -> ModelType | None:
        return db.get(self.model, id)

    def get_all(self, db: Session, limit: int | None = None) -> list[ModelType]:
        """All rows, oldest first."""
        stmt = select(self.model).order_by(self.model.created_at, self.model.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars().all())

    def count(self, db: Session, *criteria) -> int:
        """Count rows matching optional WHERE criteria."""
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        return int(db.execute(stmt).scalar_one())

    def create(self, db: Session, values: dict[str, Any]) -> ModelType:
        """Insert one row and commit."""
        row = self.model(**values)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def update(self, db: Session, row: ModelType, values: dict[str, Any]) -> ModelType:
        """Set columns on `row`, stamp ``updated_at`` when the table has one, and commit.

        Raises:
            AttributeError: a key is not a column of the model
        """
        for field, value in values.items():
            if not hasattr(self.model, field):
                raise AttributeError(f"{self.model.__name__} has no column {field!r}")
            setattr(row, field, value)
        if hasattr(self.model, "updated_at") and "updated_at" not in values:
            row.updated_at = get_timestamp_ms()
        db.commit()
        db.refresh(row)
        return row
