"""
Notification port.

Delivery is fire-and-forget: `notify_*` helpers never raise. Failures are
logged and counted, the booking operation that triggered them still succeeds.
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from datetime import date
from email.message import EmailMessage

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import notification_failures

logger = get_logger(__name__)


class Notifier(ABC):
    """
    Interface for user notifications.

    Implementations:
    - SmtpNotifier: plain-text email over SMTP
    - LogNotifier: writes the message to the structured log (development)
    """

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message. May raise; callers go through `_dispatch`."""
        pass

    async def notify_approved(
        self, email: str, username: str, service_name: str, date_from: date, date_to: date
    ) -> None:
        body = (
            f"Hi {username},\n\nyour booking for {service_name} "
            f"from {date_from.isoformat()} to {date_to.isoformat()} was approved."
        )
        await self._dispatch("approved", email, "Your booking was approved!", body)

    async def notify_denied(
        self, email: str, username: str, service_name: str, date_from: date, date_to: date
    ) -> None:
        body = (
            f"Hi {username},\n\nyour booking for {service_name} "
            f"from {date_from.isoformat()} to {date_to.isoformat()} was denied. "
            "The credits were returned to your wallet."
        )
        await self._dispatch("denied", email, "Your booking was denied!", body)

    async def send_confirmation(self, email: str, code: str, user_id: int) -> None:
        body = f"Confirm your email with user id {user_id} and code: {code}"
        await self._dispatch("confirmation", email, "Please confirm your email", body)

    async def _dispatch(self, kind: str, to: str, subject: str, body: str) -> None:
        try:
            await self.send(to, subject, body)
            logger.info("notification_sent", kind=kind, to=to)
        except Exception as e:
            notification_failures.labels(kind=kind).inc()
            logger.error("notification_failed", kind=kind, to=to, error=str(e))


class LogNotifier(Notifier):
    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("notification_logged", to=to, subject=subject)


class SmtpNotifier(Notifier):
    """Sends through the configured SMTP relay; skips when no host is set."""

    def __init__(self):
        self.settings = get_settings()

    async def send(self, to: str, subject: str, body: str) -> None:
        if not self.settings.SMTP_HOST:
            logger.info("smtp_not_configured", to=to)
            return
        await asyncio.to_thread(self._deliver, to, subject, body)

    def _deliver(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = to
        message["From"] = self.settings.EMAIL_SENDER
        message.set_content(body)

        with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=5) as server:
            if self.settings.SMTP_USERNAME and self.settings.SMTP_PASSWORD:
                server.starttls()
                server.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD)
            server.send_message(message)
