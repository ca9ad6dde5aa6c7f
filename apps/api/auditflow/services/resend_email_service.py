"""Resend-backed sender for form notification emails.

Uses PLATFORM_RESEND_API_KEY and PLATFORM_EMAIL_FROM. Transient failures
(429/5xx, transport errors) are retried with backoff before giving up.
"""

from __future__ import annotations

import logging

import httpx

from auditflow.core.exceptions import NotificationDeliveryFailure
from auditflow.core.structured_logging import build_log_context
from auditflow.schemas.notifications import EmailMessage
from auditflow.services.http_service import send_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0


class ResendEmailSender:
    key = "resend"

    def __init__(
        self,
        *,
        api_key: str,
        from_email: str,
        max_attempts: int = RESEND_MAX_ATTEMPTS,
        retry_base_delay: float = RESEND_RETRY_BASE_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self._transport = transport

    def _payload(self, message: EmailMessage) -> dict[str, object]:
        payload: dict[str, object] = {
            "from": self.from_email,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        return payload

    async def send(self, message: EmailMessage) -> None:
        if not self.api_key or not self.from_email:
            raise NotificationDeliveryFailure("Resend sender not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if message.idempotency_key:
            headers["Idempotency-Key"] = message.idempotency_key
        payload = self._payload(message)

        try:
            async with httpx.AsyncClient(
                timeout=RESEND_TIMEOUT_SECONDS, transport=self._transport
            ) as client:

                async def request_fn() -> httpx.Response:
                    return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

                response = await send_with_retries(
                    request_fn,
                    max_attempts=self.max_attempts,
                    base_delay=self.retry_base_delay,
                    max_delay=RESEND_RETRY_MAX_DELAY,
                    log_context=build_log_context(operation="resend.send"),
                )
        except httpx.RequestError as exc:
            raise NotificationDeliveryFailure(f"Resend request failed: {exc}") from exc

        if 200 <= response.status_code < 300:
            return

        # Resend answers 409 when the idempotency key was already used, i.e. the
        # message already went out.
        if response.status_code == 409 and message.idempotency_key:
            logger.info("Resend idempotency conflict treated as delivered")
            return

        raise NotificationDeliveryFailure(f"Resend API error {response.status_code}")
