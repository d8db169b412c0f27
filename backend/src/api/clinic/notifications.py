# pyright: reportMissingTypeStubs=false
"""
Notification channel endpoints.

The clinic owner can send a test message through the configured n8n webhook
(or the Telegram fallback) to check that notifications get through.
"""

import logging

from fastapi import APIRouter, Depends

from api.responses import NotificationTestResponse
from auth.permissions import require_action
from models import UserProfile
from services.notification_service import NotificationDispatcher, build_notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/notifications/test", summary="Send a test notification")
async def send_test_notification(
    current_profile: UserProfile = Depends(require_action("configure")),
    dispatcher: NotificationDispatcher = Depends(build_notification_dispatcher)
) -> NotificationTestResponse:
    """Send a test message and report whether any channel accepted it."""
    result = await dispatcher.test_connection()
    delivered = result is not None
    if delivered:
        logger.info(f"Test notification delivered for clinic {current_profile.clinic_id}")
    else:
        logger.warning(f"Test notification for clinic {current_profile.clinic_id} was not delivered")
    return NotificationTestResponse(delivered=delivered)
