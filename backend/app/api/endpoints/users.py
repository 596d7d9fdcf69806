"""User profile API endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_caller, get_request_context
from app.db.database import get_db
from app.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models.auth_schemas import ProfileResponse, ProfileUpdate
from app.repositories.user import normalize_email, user_repository
from app.services import activity_service
from app.services.activity_service import ActivityType, RequestContext
from app.services.auth_service import Caller

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{email}", response_model=ProfileResponse)
def get_profile(email: str, db: Session = Depends(get_db)):
    user = user_repository.get_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")
    return ProfileResponse(name=user.name, email=user.email)


@router.put("/{email}", response_model=ProfileResponse)
def update_profile(
    email: str,
    body: ProfileUpdate,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Change the display name; allowed for the user themself or an admin."""
    email = normalize_email(email)
    logger.info(f"PUT /api/user/{email}")

    name = (body.name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if not caller.is_admin and normalize_email(caller.email) != email:
        raise ForbiddenError("You can only update your own profile")

    user = user_repository.get_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")

    old_name = user.name
    user = user_repository.update_name(db, user, name)

    background_tasks.add_task(
        activity_service.record,
        ActivityType.PROFILE_UPDATE,
        email,
        f"Updated name to: {name}",
        {"oldName": old_name},
        context,
    )
    return ProfileResponse(name=user.name, email=user.email)
