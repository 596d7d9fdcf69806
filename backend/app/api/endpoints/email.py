"""Operational smoke test for outbound email."""

import logging

from fastapi import APIRouter, Depends

from app.api.deps import require_admin
from app.exceptions import UpstreamUnavailableError
from app.models.schemas import TestEmailRequest, TestEmailResponse
from app.services.auth_service import Caller
from app.services.email_service import email_notifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/test-email", response_model=TestEmailResponse)
def send_test_email(body: TestEmailRequest, caller: Caller = Depends(require_admin)):
    """Verify the SMTP transport and send a canned message (defaults to the caller)."""
    target = body.testEmail or caller.email
    logger.info(f"POST /api/test-email: target={target}, admin={caller.email}")

    result = email_notifier.test_configuration(target)
    if not result.success:
        raise UpstreamUnavailableError("Test email failed", debug={"reason": result.error})
    return TestEmailResponse(success=True, message=f"Test email sent to {target}", messageId=result.messageId)
