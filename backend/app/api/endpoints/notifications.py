"""Per-user notification feed, derived from the activity log."""

from fastapi import APIRouter, Depends

from app.api.deps import get_current_caller
from app.exceptions import ForbiddenError
from app.repositories.user import normalize_email
from app.services import activity_service
from app.services.activity_service import Notification
from app.services.auth_service import Caller

router = APIRouter()


@router.get("/{email}")
def list_notifications(email: str, caller: Caller = Depends(get_current_caller)) -> dict[str, list[Notification]]:
    """Newest "added to a workspace" entries for `email` (self or admin)."""
    if not caller.is_admin and normalize_email(caller.email) != normalize_email(email):
        raise ForbiddenError("You can only read your own notifications")
    return {"notifications": activity_service.notifications_for(email)}
