"""Tests for the Resend-backed notification sender."""

import json

import httpx
import pytest

from auditflow.core.exceptions import NotificationDeliveryFailure
from auditflow.schemas.notifications import EmailMessage
from auditflow.services.resend_email_service import RESEND_SEND_URL, ResendEmailSender


def _message(idempotency_key: str | None = "form-form_approved/abc/batch/owner@acme.test") -> EmailMessage:
    return EmailMessage(
        to="owner@acme.test",
        subject="Form Approved: Compliance Audit Returns",
        text="Your submission has been approved.",
        html="<p>Your submission has been approved.</p>",
        idempotency_key=idempotency_key,
    )


def _sender(handler, **kwargs) -> ResendEmailSender:
    return ResendEmailSender(
        api_key="re_test_key",
        from_email="audits@auditflow.test",
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_send_posts_message_with_headers():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    await _sender(handler).send(_message())

    assert len(captured) == 1
    request = captured[0]
    assert str(request.url) == RESEND_SEND_URL
    assert request.headers["Authorization"] == "Bearer re_test_key"
    assert request.headers["Idempotency-Key"] == "form-form_approved/abc/batch/owner@acme.test"
    payload = json.loads(request.content)
    assert payload == {
        "from": "audits@auditflow.test",
        "to": ["owner@acme.test"],
        "subject": "Form Approved: Compliance Audit Returns",
        "html": "<p>Your submission has been approved.</p>",
        "text": "Your submission has been approved.",
    }


@pytest.mark.asyncio
async def test_send_without_idempotency_key_omits_header():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    await _sender(handler).send(_message(idempotency_key=None))

    assert "Idempotency-Key" not in captured[0].headers


@pytest.mark.asyncio
async def test_send_retries_transient_errors():
    responses = [httpx.Response(503), httpx.Response(429), httpx.Response(200, json={"id": "email_123"})]
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return responses.pop(0)

    await _sender(handler).send(_message())

    assert calls["count"] == 3


@pytest.mark.asyncio
async def test_send_gives_up_after_max_attempts():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(502)

    with pytest.raises(NotificationDeliveryFailure, match="502"):
        await _sender(handler, max_attempts=2).send(_message())

    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_idempotency_conflict_counts_as_delivered():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"name": "invalid_idempotent_request"})

    await _sender(handler).send(_message())


@pytest.mark.asyncio
async def test_conflict_without_idempotency_key_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409)

    with pytest.raises(NotificationDeliveryFailure):
        await _sender(handler).send(_message(idempotency_key=None))


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    with pytest.raises(NotificationDeliveryFailure, match="422"):
        await _sender(handler).send(_message())

    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_transport_error_becomes_delivery_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NotificationDeliveryFailure, match="request failed"):
        await _sender(handler, max_attempts=2).send(_message())


@pytest.mark.asyncio
async def test_unconfigured_sender_fails_fast():
    sender = ResendEmailSender(api_key="", from_email="audits@auditflow.test")

    with pytest.raises(NotificationDeliveryFailure, match="not configured"):
        await sender.send(_message())
