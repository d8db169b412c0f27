# pyright: reportMissingTypeStubs=false
"""
Notification dispatcher for admin alerts and invitation emails.

Each notification type has its own webhook (typically an n8n workflow that
renders the email or chat message). When the type's webhook is not
configured, unreachable, or answers with an error, the dispatcher falls back
to sending a Telegram message directly. Dispatch is best-effort: callers
schedule it as a background task and it never raises.
"""

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx

from core import config
from core.constants import ALERT_SEVERITY, DEFAULT_ALERT_SEVERITY, NOTIFICATION_SOURCE
from services.telegram_service import TelegramService
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    INVITATION = "invitation"
    TRANSACTION = "transaction"
    DAILY_REVENUE = "daily_revenue"
    SUBSCRIPTION_WARNING = "subscription_warning"
    SYSTEM_ALERT = "system_alert"
    TEST = "test"


def get_alert_severity(alert_type: str) -> str:
    """Map an alert type to its severity (defaults to medium)."""
    return ALERT_SEVERITY.get(alert_type, DEFAULT_ALERT_SEVERITY)


def get_subscription_urgency(days_left: int) -> str:
    """Urgency of a subscription warning: critical within a day, high within three."""
    if days_left <= 1:
        return "critical"
    if days_left <= 3:
        return "high"
    return "medium"


class NotificationDispatcher:
    """
    Sends notifications to per-type webhooks with a Telegram fallback.

    Attributes:
        webhooks: Webhook URL per notification type; missing or empty means unconfigured
        fallback: Direct-message client used when the webhook path fails
        timeout: Webhook request timeout in seconds
    """

    def __init__(
        self,
        webhooks: Mapping[NotificationType, str],
        fallback: Optional[TelegramService] = None,
        timeout: float = 10.0
    ) -> None:
        self.webhooks = {kind: url for kind, url in webhooks.items() if url}
        self.fallback = fallback
        self.timeout = timeout

    async def send(self, kind: NotificationType, data: Dict[str, Any]) -> Optional[Any]:
        """
        Deliver one notification.

        Returns:
            Webhook response body, the fallback's result, or None when both fail
        """
        url = self.webhooks.get(kind)
        if not url:
            logger.warning(f"Webhook for {kind.value} not configured, falling back to direct message")
            return await self._fallback(kind, data)

        body = {
            **data,
            "type": kind.value,
            "timestamp": utc_now().isoformat(),
            "source": NOTIFICATION_SOURCE,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Webhook for {kind.value} failed: {e}")
            return await self._fallback(kind, data)

        logger.info(f"Webhook for {kind.value} sent successfully")
        try:
            return response.json()
        except ValueError:
            # Webhook acknowledged without a JSON body
            return {"status": response.status_code}

    async def _fallback(self, kind: NotificationType, data: Dict[str, Any]) -> Optional[Any]:
        if self.fallback is None:
            logger.warning(f"No direct-message fallback configured, dropping {kind.value} notification")
            return None

        logger.info(f"Using direct Telegram fallback for {kind.value}")
        try:
            if kind == NotificationType.INVITATION:
                return await self.fallback.send_invitation_notice(data["invitation"])
            if kind == NotificationType.TRANSACTION:
                return await self.fallback.send_transaction_notification(data["transaction"])
            if kind == NotificationType.DAILY_REVENUE:
                return await self.fallback.send_daily_revenue_summary(data["stats"])
            if kind == NotificationType.SUBSCRIPTION_WARNING:
                return await self.fallback.send_subscription_warning(data["clinic"], data["days_left"])
            if kind == NotificationType.SYSTEM_ALERT:
                return await self.fallback.send_system_alert(data["alert_type"], data["message"])
            return await self.fallback.test_connection()
        except Exception as e:
            logger.exception(f"Fallback to Telegram also failed for {kind.value}: {e}")
            return None

    async def send_invitation(self, invitation: Dict[str, Any]) -> Optional[Any]:
        """Ask the invitation workflow to email an invitee their signup link."""
        return await self.send(NotificationType.INVITATION, {"invitation": invitation})

    async def send_transaction_notification(self, transaction: Dict[str, Any]) -> Optional[Any]:
        clinic = transaction.get("clinic_info") or {}
        return await self.send(NotificationType.TRANSACTION, {
            "transaction": transaction,
            "clinic": {"id": clinic.get("id"), "name": clinic.get("name")},
            "patient": {
                "name": transaction.get("patient_name"),
                "amount": transaction.get("total_amount"),
            },
            "system_fee": transaction.get("system_fee"),
        })

    async def send_daily_revenue_summary(self, stats: Dict[str, Any]) -> Optional[Any]:
        return await self.send(NotificationType.DAILY_REVENUE, {
            "stats": stats,
            "date": utc_now().date().isoformat(),
        })

    async def send_subscription_warning(self, clinic: Dict[str, Any], days_left: int) -> Optional[Any]:
        return await self.send(NotificationType.SUBSCRIPTION_WARNING, {
            "clinic": clinic,
            "days_left": days_left,
            "urgency": get_subscription_urgency(days_left),
        })

    async def send_system_alert(self, alert_type: str, message: str) -> Optional[Any]:
        return await self.send(NotificationType.SYSTEM_ALERT, {
            "alert_type": alert_type,
            "message": message,
            "severity": get_alert_severity(alert_type),
        })

    async def test_connection(self) -> Optional[Any]:
        return await self.send(NotificationType.TEST, {"message": "Webhook test from CLINICQ"})


def build_notification_dispatcher() -> NotificationDispatcher:
    """
    Build a dispatcher from the current configuration.

    Used as a FastAPI dependency so each request gets its own client and tests
    can override it.
    """
    fallback: Optional[TelegramService] = None
    if config.TELEGRAM_BOT_TOKEN and config.TELEGRAM_ADMIN_CHAT_ID:
        fallback = TelegramService(
            bot_token=config.TELEGRAM_BOT_TOKEN,
            chat_id=config.TELEGRAM_ADMIN_CHAT_ID,
            api_url=config.TELEGRAM_API_URL,
            timeout=config.NOTIFICATION_TIMEOUT_SECONDS,
        )

    return NotificationDispatcher(
        webhooks={
            NotificationType.INVITATION: config.N8N_INVITATION_WEBHOOK,
            NotificationType.TRANSACTION: config.N8N_TRANSACTION_WEBHOOK,
            NotificationType.DAILY_REVENUE: config.N8N_DAILY_REVENUE_WEBHOOK,
            NotificationType.SUBSCRIPTION_WARNING: config.N8N_SUBSCRIPTION_WEBHOOK,
            NotificationType.SYSTEM_ALERT: config.N8N_SYSTEM_ALERT_WEBHOOK,
            NotificationType.TEST: config.N8N_TEST_WEBHOOK,
        },
        fallback=fallback,
        timeout=config.NOTIFICATION_TIMEOUT_SECONDS,
    )
