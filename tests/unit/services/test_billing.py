"""Tests for subscription checkout."""

from unittest.mock import AsyncMock

import pytest

from invoicekit.core.entities import BillingStatus, SubscriptionPlan, User
from invoicekit.core.exceptions import PaymentProviderError, ValidationError
from invoicekit.core.interfaces import CheckoutSession
from invoicekit.core.services import CheckoutService


def _service(user: User | None = None):
    provider = AsyncMock()
    provider.create_checkout.return_value = CheckoutSession(
        session_id="cs_123", url="https://pay.example.com/cs_123"
    )
    users = AsyncMock()
    users.get_user.return_value = user
    users.update_user.side_effect = lambda u: u
    billing = AsyncMock()
    billing.create_record.side_effect = lambda r: r

    service = CheckoutService(
        payment_provider=provider,
        user_store=users,
        billing_store=billing,
        monthly_price=9.99,
        currency="USD",
        success_url="https://app.example.com/billing/success",
        cancel_url="https://app.example.com/billing/cancel",
    )
    return service, provider, users, billing


class TestCheckoutService:
    async def test_monthly_creates_session_and_pending_record(self):
        service, provider, users, billing = _service()

        result = await service.start_checkout(1, "monthly")

        assert result.activated is False
        assert result.url == "https://pay.example.com/cs_123"
        request = provider.create_checkout.await_args.args[0]
        assert request.amount == 9.99
        assert request.metadata == {"user_id": "1", "plan": "monthly"}
        record = billing.create_record.await_args.args[0]
        assert record.status == BillingStatus.PENDING
        assert record.session_id == "cs_123"
        users.update_user.assert_not_awaited()

    async def test_pay_per_invoice_activates_immediately(self):
        user = User(id=1, email="me@example.com")
        service, provider, users, _ = _service(user)

        result = await service.start_checkout(1, "pay_per_invoice")

        assert result.activated is True
        assert result.plan == SubscriptionPlan.PAY_PER_INVOICE
        saved = users.update_user.await_args.args[0]
        assert saved.plan == SubscriptionPlan.PAY_PER_INVOICE
        assert saved.plan_activated_at is not None
        provider.create_checkout.assert_not_awaited()

    async def test_pay_per_invoice_requires_known_user(self):
        service, *_ = _service(None)
        with pytest.raises(ValidationError):
            await service.start_checkout(1, "pay_per_invoice")

    @pytest.mark.parametrize("plan", ["free", "enterprise"])
    async def test_invalid_plans_rejected(self, plan):
        service, *_ = _service()
        with pytest.raises(ValidationError):
            await service.start_checkout(1, plan)

    async def test_provider_failure_records_nothing(self):
        service, provider, _, billing = _service()
        provider.create_checkout.side_effect = PaymentProviderError("timeout")
        with pytest.raises(PaymentProviderError):
            await service.start_checkout(1, "monthly")
        billing.create_record.assert_not_awaited()
