"""
Mail Infrastructure
===================

Plain-text email delivery over SMTP using aiosmtplib.

The pipeline and event handlers depend on IEmailSender so tests can
substitute an in-memory outbox.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from ticket_ai.config import Settings, settings as default_settings
from ticket_ai.core import NotificationException
from ticket_ai.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SENDER_NAME = "Ticket AI System"


@dataclass
class OutgoingEmail:
    """Plain-text email ready for delivery."""
    to: str
    subject: str
    text: str


class IEmailSender(ABC):
    """Interface for email delivery."""

    @abstractmethod
    async def send(self, message: OutgoingEmail) -> bool:
        """
        Deliver a message.

        Returns:
            True if delivered, False if delivery is disabled

        Raises:
            NotificationException: If delivery was attempted and failed
        """


class SMTPEmailSender(IEmailSender):
    """
    SMTP sender with STARTTLS and login credentials from settings.

    When SMTP is not configured, messages are logged and skipped.
    """

    def __init__(self, config: Optional[Settings] = None):
        self._config = config or default_settings

    def _build_message(self, message: OutgoingEmail) -> EmailMessage:
        sender = self._config.smtp_sender or self._config.smtp_username
        email = EmailMessage()
        email["From"] = f'"{SENDER_NAME}" <{sender}>'
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.text)
        return email

    async def send(self, message: OutgoingEmail) -> bool:
        if not self._config.smtp_configured:
            logger.debug(
                "SMTP not configured, skipping email",
                extra={"to": message.to, "subject": message.subject}
            )
            return False

        try:
            await aiosmtplib.send(
                self._build_message(message),
                hostname=self._config.smtp_host,
                port=self._config.smtp_port,
                username=self._config.smtp_username,
                password=self._config.smtp_password,
                start_tls=self._config.smtp_start_tls,
                timeout=self._config.smtp_timeout_seconds,
            )
        except aiosmtplib.SMTPException as e:
            raise NotificationException(f"Failed to send email: {e}", {"to": message.to})
        except OSError as e:
            raise NotificationException(f"SMTP connection failed: {e}", {"to": message.to})

        logger.info("Email sent", extra={"to": message.to, "subject": message.subject})
        return True


# ========== Message templates ==========

def ticket_assigned_email(
    to: str,
    title: str,
    description: str,
    priority: Optional[str],
    status: str
) -> OutgoingEmail:
    """Notification sent to the assignee of a triaged ticket."""
    return OutgoingEmail(
        to=to,
        subject="Ticket Assigned",
        text=(
            "A new ticket has been assigned to you:\n\n"
            f"Title: {title}\n"
            f"Description: {description}\n"
            f"Priority: {priority}\n"
            f"Status: {status}"
        )
    )


def welcome_email(to: str) -> OutgoingEmail:
    """Welcome message sent after signup."""
    return OutgoingEmail(
        to=to,
        subject=f"Welcome to {SENDER_NAME}",
        text=(
            "Hello,\n\n"
            f"Welcome to our {SENDER_NAME}! We're excited to have you on board.\n\n"
            f"Your account has been successfully created with the email: {to}\n\n"
            "Best regards,\n"
            "The Ticket AI Team"
        )
    )
