"""SQLAlchemy ORM models for One Cre.

This module defines the database schema for the workspace application.

Entity Layout:
    User
    Workspace (aggregate root; goals -> milestones -> tasks -> attachments
               are stored inside the row as one JSON document)
      -> WorkspaceMember
    Activity  (append-only audit log)
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class User(Base):
    """User account.

    Emails are stored lower-cased; lookups compare lower-cased input.
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=True)  # None for OAuth-only accounts
    google_id = Column(String(255), nullable=True, unique=True)
    role = Column(Enum("user", "admin", name="user_role"), default="user", nullable=False)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_google_id", "google_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Workspace(Base):
    """Workspace aggregate.

    Members live in ``workspace_members`` so membership queries stay portable.
    ``goals`` holds the whole Goal -> Milestone -> Task tree; it is only ever
    replaced wholesale.
    """

    __tablename__ = "workspaces"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    owner = Column(String(255), nullable=True)  # None for legacy records
    goals = Column(JSON, nullable=False, default=list)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    member_rows = relationship(
        "WorkspaceMember",
        back_populates="workspace",
        cascade="all, delete-orphan",
        order_by="WorkspaceMember.position",
        lazy="selectin",
    )

    __table_args__ = (Index("idx_workspaces_owner", "owner"),)

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name={self.name})>"


class WorkspaceMember(Base):
    """Membership of one (lower-cased) email in one workspace."""

    __tablename__ = "workspace_members"

    workspace_id = Column(String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), primary_key=True)
    position = Column(BigInteger, nullable=False, default=0)

    workspace = relationship("Workspace", back_populates="member_rows")

    __table_args__ = (Index("idx_workspace_members_email", "email"),)

    def __repr__(self) -> str:
        return f"<WorkspaceMember(workspace_id={self.workspace_id}, email={self.email})>"


class Activity(Base):
    """Activity - append-only record of notable state transitions.

    Used for:
    - Admin dashboard activity feed and statistics
    - Per-user notification feed (member_added entries)
    """

    __tablename__ = "activities"

    id = Column(String(64), primary_key=True)
    type = Column(String(64), nullable=False)
    actor = Column(String(255), nullable=False)  # email or "system"
    description = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_activities_type", "type"),
        Index("idx_activities_actor", "actor"),
        Index("idx_activities_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, type={self.type}, actor={self.actor})>"


# Aliases used by repositories to distinguish ORM rows from pydantic models
UserModel = User
WorkspaceModel = Workspace
WorkspaceMemberModel = WorkspaceMember
ActivityModel = Activity
