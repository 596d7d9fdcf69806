"""Workspace repository - the aggregate store.

Each workspace row holds its whole goals tree as one JSON document and is
always read and written as a unit. ``replace_goals`` overwrites the tree in a
single UPDATE inside one transaction: callers see either the old tree or the
new one, never a mix. Concurrent replacements are last-write-wins.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.components.workspace.models import Goal, Workspace
from app.components.workspace.tree import assign_missing_ids, collect_attachment_file_names
from app.db.models import WorkspaceMemberModel, WorkspaceModel
from app.exceptions import NotFoundError, ValidationError
from app.repositories.base import BaseRepository
from app.repositories.user import normalize_email, user_repository
from app.utils import generate_id, get_logger, get_timestamp_ms

logger = get_logger(__name__)


def normalize_members(members: list[str] | None, owner_email: str | None = None) -> list[str]:
    """Lower-case, drop blanks and duplicates (first occurrence wins), append the owner if missing."""
    normalized: list[str] = []
    for email in members or []:
        email = normalize_email(email)
        if email and email not in normalized:
            normalized.append(email)
    owner_email = normalize_email(owner_email)
    if owner_email and owner_email not in normalized:
        normalized.append(owner_email)
    return normalized


def _dump_goals(goals: list[Goal]) -> list[dict]:
    return [goal.model_dump(mode="json") for goal in goals]


class WorkspaceRepository(BaseRepository[WorkspaceModel]):
    """Repository for workspace aggregates."""

    def __init__(self):
        super().__init__(WorkspaceModel)

    # ==================== Mapping ====================

    @staticmethod
    def to_domain(row: WorkspaceModel) -> Workspace:
        """Convert an ORM row into the pydantic aggregate."""
        return Workspace(
            id=row.id,
            name=row.name,
            owner=row.owner,
            members=[m.email for m in row.member_rows],
            goals=[Goal.model_validate(goal) for goal in (row.goals or [])],
            createdAt=row.created_at,
            updatedAt=row.updated_at,
        )

    # ==================== Reads ====================

    def find(self, db: Session, workspace_id: str) -> Workspace | None:
        """Get a workspace aggregate, or None if absent."""
        row = self.get_by_id(db, workspace_id)
        if row is None:
            return None
        # Always read the committed document, not a cached identity-map copy
        db.refresh(row)
        return self.to_domain(row)

    def get_workspace(self, db: Session, workspace_id: str) -> Workspace:
        """Get a workspace aggregate.

        Raises:
            NotFoundError: if no workspace has this id
        """
        workspace = self.find(db, workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found")
        return workspace

    def list_for_member(self, db: Session, email: str) -> list[Workspace]:
        """Workspaces whose member list contains `email` (case-insensitive)."""
        email = normalize_email(email)
        if not email:
            return []
        stmt = (
            select(WorkspaceModel)
            .join(WorkspaceMemberModel, WorkspaceMemberModel.workspace_id == WorkspaceModel.id)
            .where(WorkspaceMemberModel.email == email)
            .order_by(WorkspaceModel.created_at)
        )
        return [self.to_domain(row) for row in db.execute(stmt).scalars().unique().all()]

    def list_all(self, db: Session) -> list[Workspace]:
        return [self.to_domain(row) for row in self.get_all(db)]

    def count_created_since(self, db: Session, since_ms: int) -> int:
        return self.count(db, WorkspaceModel.created_at >= since_ms)

    # ==================== Writes ====================

    def create_workspace(
        self,
        db: Session,
        name: str,
        owner_email: str | None,
        members: list[str] | None = None,
        goals: list[Goal] | None = None,
    ) -> Workspace:
        """Create a workspace; the owner is always included in the members."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Workspace name is required")

        owner = normalize_email(owner_email) or None
        goals = assign_missing_ids(list(goals or []))
        now = get_timestamp_ms()

        row = WorkspaceModel(
            id=generate_id("ws"),
            name=name,
            owner=owner,
            goals=_dump_goals(goals),
            created_at=now,
            updated_at=now,
        )
        row.member_rows = [
            WorkspaceMemberModel(email=email, position=index)
            for index, email in enumerate(normalize_members(members, owner))
        ]
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info(f"Workspace created: id={row.id}, owner={owner}, members={len(row.member_rows)}")
        return self.to_domain(row)

    def replace_goals(self, db: Session, workspace_id: str, goals: list[Goal]) -> Workspace:
        """Atomically overwrite the entire goals tree (full replacement, no merge).

        Raises:
            ValidationError: if the submitted tree reuses a task id
            NotFoundError: if the workspace does not exist
        """
        goals = assign_missing_ids(list(goals))
        stmt = (
            update(WorkspaceModel)
            .where(WorkspaceModel.id == workspace_id)
            .values(goals=_dump_goals(goals), updated_at=get_timestamp_ms())
        )
        try:
            result = db.execute(stmt)
            if result.rowcount == 0:
                db.rollback()
                raise NotFoundError("Workspace not found")
            db.commit()
        except NotFoundError:
            raise
        except Exception:
            db.rollback()
            raise

        return self.get_workspace(db, workspace_id)

    def add_member(self, db: Session, workspace_id: str, email: str) -> tuple[Workspace, bool]:
        """Add a verified user to the member list.

        Returns:
            (workspace, added) - added is False when the email was already a member

        Raises:
            ValidationError: missing email, or the user never completed Google sign-in
            NotFoundError: workspace absent
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email required")
        if user_repository.get_verified_by_email(db, email) is None:
            raise ValidationError("User must sign in with Google first")

        row = self.get_by_id(db, workspace_id)
        if row is None:
            raise NotFoundError("Workspace not found")

        if any(m.email == email for m in row.member_rows):
            return self.to_domain(row), False

        position = max((m.position for m in row.member_rows), default=-1) + 1
        row.member_rows.append(WorkspaceMemberModel(email=email, position=position))
        row.updated_at = get_timestamp_ms()
        db.commit()
        db.refresh(row)
        logger.info(f"Member added: workspace={workspace_id}, email={email}")
        return self.to_domain(row), True

    def delete_workspace(self, db: Session, workspace_id: str) -> list[str]:
        """Delete the aggregate and return every attachment file name it referenced.

        File names are collected before the row is removed so the caller can
        drive physical cleanup.

        Raises:
            NotFoundError: workspace absent
        """
        row = self.get_by_id(db, workspace_id)
        if row is None:
            raise NotFoundError("Workspace not found")

        file_names = collect_attachment_file_names(self.to_domain(row).goals)
        db.delete(row)
        db.commit()
        logger.info(f"Workspace deleted: id={workspace_id}, attachments={len(file_names)}")
        return file_names


# Singleton instance
workspace_repository = WorkspaceRepository()
