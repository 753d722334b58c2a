"""Tests for the Resend email client."""

import json

import httpx
import pytest

from invoicekit.core.exceptions import EmailDeliveryError
from invoicekit.core.interfaces.providers import EmailMessage
from invoicekit.infrastructure.email.resend import ResendEmailSender

MESSAGE = EmailMessage(
    from_address="Studio North via reminders@invoicekit.test",
    to="ada@example.com",
    subject="Friendly reminder - Invoice #INV-0001",
    html="<p>Hello</p>",
)


def _sender(handler, **kwargs):
    return ResendEmailSender(
        api_url="https://mail.test/",
        api_key="re_test",
        max_retries=3,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_posts_payload_and_returns_id():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_42"})

    message_id = await _sender(handler).send(MESSAGE)

    assert message_id == "msg_42"
    request = seen[0]
    assert str(request.url) == "https://mail.test/emails"
    assert request.headers["Authorization"] == "Bearer re_test"
    body = json.loads(request.content)
    assert body["to"] == ["ada@example.com"]
    assert body["from"] == MESSAGE.from_address
    assert body["subject"] == MESSAGE.subject


async def test_http_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(422, text="invalid recipient")

    with pytest.raises(EmailDeliveryError) as exc_info:
        await _sender(handler).send(MESSAGE)

    assert len(calls) == 1
    assert exc_info.value.details["status_code"] == 422
    assert "invalid recipient" in exc_info.value.message


async def test_transport_error_is_retried_then_succeeds():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused")
        return httpx.Response(200, json={"id": "msg_retry"})

    assert await _sender(handler).send(MESSAGE) == "msg_retry"
    assert len(calls) == 3


async def test_transport_error_exhausts_retries():
    def handler(request):
        raise httpx.ReadTimeout("timed out")

    with pytest.raises(EmailDeliveryError):
        await _sender(handler).send(MESSAGE)


async def test_missing_message_id():
    with pytest.raises(EmailDeliveryError):
        await _sender(lambda request: httpx.Response(200, json={})).send(MESSAGE)


async def test_non_json_success_body_is_a_delivery_error():
    def handler(request):
        return httpx.Response(200, text="OK", headers={"content-type": "text/plain"})

    with pytest.raises(EmailDeliveryError) as exc_info:
        await _sender(handler).send(MESSAGE)

    assert exc_info.value.details["status_code"] == 200
    assert "not JSON" in exc_info.value.message


async def test_json_array_body_has_no_message_id():
    with pytest.raises(EmailDeliveryError):
        await _sender(lambda request: httpx.Response(200, json=["msg_1"])).send(MESSAGE)
