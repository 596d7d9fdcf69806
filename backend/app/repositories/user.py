"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import UserModel
from app.repositories.base import BaseRepository
from app.utils import generate_id, get_timestamp_ms


def normalize_email(email: str | None) -> str:
    """Lower-case and trim an email; None becomes an empty string."""
    return (email or "").strip().lower()


class UserRepository(BaseRepository[UserModel]):
    """Repository for User entity operations."""

    def __init__(self):
        super().__init__(UserModel)

    def get_by_email(self, db: Session, email: str) -> UserModel | None:
        """Get user by email (case-insensitive).

        Returns:
            User or None if not found
        """
        email = normalize_email(email)
        if not email:
            return None
        stmt = select(UserModel).where(UserModel.email == email)
        return db.execute(stmt).scalar_one_or_none()

    def get_by_google_id(self, db: Session, google_id: str) -> UserModel | None:
        """Get user by linked Google account id."""
        if not google_id:
            return None
        stmt = select(UserModel).where(UserModel.google_id == google_id)
        return db.execute(stmt).scalar_one_or_none()

    def get_verified_by_email(self, db: Session, email: str) -> UserModel | None:
        """Get user by email only if a Google identity is linked to the account."""
        user = self.get_by_email(db, email)
        if user is None or not user.google_id:
            return None
        return user

    def create_user(
        self,
        db: Session,
        name: str,
        email: str,
        hashed_password: str | None = None,
        google_id: str | None = None,
        role: str = "user",
    ) -> UserModel:
        """Create a new user.

        Args:
            db: Database session
            name: Display name
            email: Email (stored lower-cased)
            hashed_password: bcrypt hash, None for OAuth-only accounts
            google_id: Linked Google account id
            role: "user" or "admin"

        Returns:
            Created user
        """
        now = get_timestamp_ms()
        user_data = {
            "id": generate_id("user"),
            "name": name or "",
            "email": normalize_email(email),
            "hashed_password": hashed_password,
            "google_id": google_id,
            "role": role,
            "created_at": now,
            "updated_at": now,
        }
        return self.create(db, user_data)

    def set_role(self, db: Session, user: UserModel, role: str) -> UserModel:
        return self.update(db, user, {"role": role})

    def update_name(self, db: Session, user: UserModel, name: str) -> UserModel:
        return self.update(db, user, {"name": name})

    def count_created_since(self, db: Session, since_ms: int) -> int:
        return self.count(db, UserModel.created_at >= since_ms)


# Singleton instance
user_repository = UserRepository()
