"""Email sender interface + selection helpers."""

from __future__ import annotations

import logging
from typing import Protocol

from auditflow.core.config import settings
from auditflow.schemas.notifications import EmailMessage

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    key: str

    async def send(self, message: EmailMessage) -> None:
        """Deliver one message or raise NotificationDeliveryFailure."""


class LoggingEmailSender:
    """Dev sender: logs the envelope instead of delivering."""

    key = "log"

    async def send(self, message: EmailMessage) -> None:
        # Bodies can carry answer content; only the envelope is logged
        logger.info("Email not sent (no provider configured): to=%s subject=%s", message.to, message.subject)


def get_email_sender() -> EmailSender:
    """Resend when the platform sender is configured, otherwise the log sender."""
    if settings.platform_sender_configured:
        from auditflow.services.resend_email_service import ResendEmailSender

        return ResendEmailSender(
            api_key=settings.PLATFORM_RESEND_API_KEY,
            from_email=settings.PLATFORM_EMAIL_FROM,
        )
    return LoggingEmailSender()
