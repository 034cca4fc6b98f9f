from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import List

from hotel_booking.models import Booking
from hotel_booking.services import email_templates
from hotel_booking.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationService:
    """Emails booking confirmations to the guest and the hotel admin over SMTP."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def is_configured(self) -> bool:
        return self.settings.smtp_configured

    def build_messages(self, booking: Booking) -> List[EmailMessage]:
        messages: List[EmailMessage] = []
        hotel = self.settings.hotel_name

        if booking.customer_email:
            subject, html = email_templates.guest_confirmation(booking, self.settings)
            messages.append(self._message(formataddr((hotel, self.settings.from_email)), booking.customer_email, subject, html))

        if self.settings.admin_email:
            subject, html = email_templates.admin_notification(booking, self.settings)
            sender = formataddr((f"{hotel} Booking System", self.settings.from_email))
            messages.append(self._message(sender, self.settings.admin_email, subject, html))

        return messages

    async def notify(self, booking: Booking) -> bool:
        """Send every email for a committed booking. Never raises; reports success as a bool."""

        if not self.is_configured():
            logger.warning("SMTP is not configured, skipping booking emails", extra={"booking_id": booking.id})
            return False

        try:
            messages = self.build_messages(booking)
            if not messages:
                logger.info("No recipients for booking emails", extra={"booking_id": booking.id})
                return False
            await asyncio.to_thread(self._send, messages)
        except (smtplib.SMTPException, OSError) as error:
            logger.exception(
                "Failed to send booking emails",
                extra={"booking_id": booking.id, "error": str(error)},
            )
            return False
        except Exception:
            logger.exception("Unexpected error while sending booking emails", extra={"booking_id": booking.id})
            return False

        logger.info(
            "Booking emails sent",
            extra={"booking_id": booking.id, "recipients": [message["To"] for message in messages]},
        )
        return True

    def _message(self, sender: str, recipient: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send(self, messages: List[EmailMessage]) -> None:
        settings = self.settings
        client_class = smtplib.SMTP_SSL if settings.smtp_secure else smtplib.SMTP
        with client_class(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as client:
            if not settings.smtp_secure:
                client.ehlo()
                if client.has_extn("starttls"):
                    client.starttls()
                    client.ehlo()
            if settings.smtp_user:
                client.login(settings.smtp_user, settings.smtp_pass or "")
            for message in messages:
                client.send_message(message)


_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    global _notification_service
    if not _notification_service:
        _notification_service = NotificationService()
    return _notification_service
