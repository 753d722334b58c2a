"""Tests for the hosted-checkout client."""

import json

import httpx
import pytest

from invoicekit.core.exceptions import PaymentProviderError
from invoicekit.core.interfaces.providers import CheckoutRequest
from invoicekit.infrastructure.payments.checkout import HttpPaymentProvider

REQUEST = CheckoutRequest(
    amount=9.99,
    currency="USD",
    description="InvoiceKit monthly",
    success_url="https://app.test/ok",
    cancel_url="https://app.test/cancel",
    metadata={"user_id": "1", "plan": "monthly"},
)


def _provider(handler):
    return HttpPaymentProvider(
        api_url="https://pay.test",
        api_key="sk_test",
        transport=httpx.MockTransport(handler),
    )


async def test_creates_session_in_minor_units():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "cs_1", "url": "https://pay.test/cs_1"})

    session = await _provider(handler).create_checkout(REQUEST)

    assert session.session_id == "cs_1"
    assert session.url == "https://pay.test/cs_1"
    assert seen[0]["amount"] == 999
    assert seen[0]["currency"] == "usd"
    assert seen[0]["metadata"] == {"user_id": "1", "plan": "monthly"}


async def test_rejection_raises():
    with pytest.raises(PaymentProviderError) as exc_info:
        await _provider(lambda r: httpx.Response(402, text="card declined")).create_checkout(
            REQUEST
        )

    assert exc_info.value.details["status_code"] == 402


async def test_network_failure_raises():
    def handler(request):
        raise httpx.ConnectError("unreachable")

    with pytest.raises(PaymentProviderError):
        await _provider(handler).create_checkout(REQUEST)


async def test_incomplete_response_raises():
    with pytest.raises(PaymentProviderError):
        await _provider(lambda r: httpx.Response(200, json={"id": "cs_1"})).create_checkout(
            REQUEST
        )


async def test_html_success_body_raises():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(PaymentProviderError) as exc_info:
        await _provider(handler).create_checkout(REQUEST)

    assert "not JSON" in exc_info.value.message
