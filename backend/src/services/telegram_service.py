# pyright: reportMissingTypeStubs=false
"""
Telegram Bot API client used as the direct-message fallback for notifications.

Messages are HTML-formatted and sent to a single admin chat. Sending is
best-effort: failures are logged and reported as ``None``, never raised.
"""

import logging
from datetime import datetime
from html import escape
from typing import Any, Dict, Optional

import httpx

from utils.datetime_utils import format_display_date, format_display_datetime, utc_now

logger = logging.getLogger(__name__)


def format_idr(amount: float | int) -> str:
    """Format an amount as Indonesian Rupiah, e.g. IDR 1.250.000."""
    return "IDR " + f"{int(round(amount)):,}".replace(",", ".")


class TelegramService:
    """
    Service for Telegram Bot API operations.

    Attributes:
        bot_token: Bot token issued by BotFather
        chat_id: Chat that receives admin notifications
        api_url: Bot API base URL
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 10.0
    ) -> None:
        """
        Initialize the Telegram client.

        Raises:
            ValueError: If either the bot token or the chat id is empty
        """
        if not bot_token or not chat_id:
            raise ValueError("Both bot_token and chat_id are required")

        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @property
    def send_message_url(self) -> str:
        return f"{self.api_url}/bot{self.bot_token}/sendMessage"

    async def send_admin_message(self, message: str) -> Optional[Dict[str, Any]]:
        """
        Send an HTML message to the admin chat.

        Returns:
            Telegram response body if the API accepted the message, None otherwise
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.send_message_url,
                    json={
                        "chat_id": self.chat_id,
                        "text": message,
                        "parse_mode": "HTML",
                    },
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram request failed: {e}")
            return None

        if data.get("ok"):
            logger.info("Telegram message sent successfully")
            return data

        logger.error(f"Telegram error: {data.get('description')}")
        return None

    async def send_transaction_notification(self, transaction: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        clinic = transaction.get("clinic_info") or {}
        items = [f"• {escape(str(s.get('name', '')))}" for s in transaction.get("services", [])]
        items += [
            f"• {escape(str(m.get('name', '')))} (x{m.get('quantity', 1)})"
            for m in transaction.get("medications", []) + transaction.get("additional_items", [])
        ]
        timestamp = transaction.get("timestamp") or utc_now()
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        message = "\n".join([
            "🏥 <b>CLINICQ Transaction Processed</b>",
            "",
            f"👤 <b>Patient:</b> {escape(str(transaction.get('patient_name', '')))}",
            f"🏥 <b>Clinic:</b> {escape(str(clinic.get('name', '')))}",
            f"💰 <b>Amount:</b> {format_idr(transaction.get('total_amount', 0))}",
            f"💸 <b>Your Fee:</b> {format_idr(transaction.get('system_fee', 0))}",
            f"📅 <b>Date:</b> {format_display_date(timestamp)}",
            f"👨‍⚕️ <b>Doctor:</b> {escape(str(transaction.get('doctor', '')))}",
            f"💳 <b>Cashier:</b> {escape(str(transaction.get('cashier', '')))}",
            "",
            "📊 <b>Items:</b>",
            *items,
        ])
        return await self.send_admin_message(message)

    async def send_daily_revenue_summary(self, stats: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        count = stats.get("transaction_count", 0)
        revenue = stats.get("total_revenue", 0)
        average = revenue / count if count else 0
        growth = stats.get("growth", 0)
        message = "\n".join([
            "📈 <b>CLINICQ Daily Revenue Summary</b>",
            "",
            f"📅 <b>Date:</b> {format_display_date(utc_now())}",
            f"💰 <b>Total Transactions:</b> {count}",
            f"💸 <b>Total Revenue:</b> {format_idr(revenue)}",
            f"🏥 <b>Active Clinics:</b> {stats.get('active_clinics', 0)}",
            f"📊 <b>Average per Transaction:</b> {format_idr(average)}",
            "",
            "🎯 <b>Performance:</b>",
            f"• Revenue Target: {'Met ✅' if stats.get('revenue_target') else 'Not Met ❌'}",
            f"• Growth: {'+' if growth > 0 else ''}{growth}%",
        ])
        return await self.send_admin_message(message)

    async def send_subscription_warning(self, clinic: Dict[str, Any], days_left: int) -> Optional[Dict[str, Any]]:
        if days_left <= 1:
            icon, footer = "🚨", "🚨 <b>URGENT:</b> Subscription expires today!"
        elif days_left <= 3:
            icon, footer = "⚠️", "⚠️ <b>WARNING:</b> Subscription expires soon!"
        else:
            icon, footer = "📅", "📅 <b>REMINDER:</b> Subscription renewal needed"
        message = "\n".join([
            f"{icon} <b>CLINICQ Subscription Alert</b>",
            "",
            f"🏥 <b>Clinic:</b> {escape(str(clinic.get('name', '')))}",
            f"📧 <b>Owner:</b> {escape(str(clinic.get('owner_id', '')))}",
            f"⏰ <b>Expires in:</b> {days_left} day{'s' if days_left > 1 else ''}",
            "",
            footer,
        ])
        return await self.send_admin_message(message)

    async def send_system_alert(self, alert_type: str, text: str) -> Optional[Dict[str, Any]]:
        message = "\n".join([
            "🔔 <b>CLINICQ System Alert</b>",
            "",
            f"📋 <b>Type:</b> {escape(alert_type)}",
            f"⏰ <b>Time:</b> {format_display_datetime(utc_now())}",
            f"📝 <b>Message:</b> {escape(text)}",
        ])
        return await self.send_admin_message(message)

    async def send_invitation_notice(self, invitation: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Tell the admin chat an invitation email could not go through the webhook."""
        message = "\n".join([
            "✉️ <b>CLINICQ Invitation Sent</b>",
            "",
            f"📧 <b>To:</b> {escape(str(invitation.get('email', '')))}",
            f"🏥 <b>Clinic:</b> {escape(str(invitation.get('clinic_name', '')))}",
            f"👤 <b>Role:</b> {escape(str(invitation.get('role', '')))}",
            f"🔗 <b>Signup:</b> {escape(str(invitation.get('signup_url', '')))}",
        ])
        return await self.send_admin_message(message)

    async def test_connection(self) -> Optional[Dict[str, Any]]:
        message = "\n".join([
            "🧪 <b>CLINICQ Telegram Bot Test</b>",
            "",
            "✅ Bot is working correctly!",
            f"📅 Test Date: {format_display_datetime(utc_now())}",
            f"💬 Chat ID: {escape(self.chat_id)}",
        ])
        return await self.send_admin_message(message)
