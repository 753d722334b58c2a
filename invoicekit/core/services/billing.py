"""Subscription checkout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    BillingRecord,
    BillingStatus,
    SubscriptionPlan,
)
from invoicekit.core.exceptions import ValidationError
from invoicekit.core.interfaces.providers import CheckoutRequest, IPaymentProvider
from invoicekit.core.interfaces.storage import IBillingStore, IUserStore

logger = get_logger(__name__)


@dataclass
class CheckoutResult:
    plan: SubscriptionPlan
    activated: bool
    session_id: str | None = None
    url: str | None = None


class CheckoutService:
    """
    Starts a plan change.

    ``pay_per_invoice`` needs no upfront payment and is activated at
    once. ``monthly`` goes through a hosted checkout; the plan switches
    when the provider confirms payment out of band.
    """

    def __init__(
        self,
        payment_provider: IPaymentProvider,
        user_store: IUserStore,
        billing_store: IBillingStore,
        monthly_price: float,
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> None:
        self._provider = payment_provider
        self._users = user_store
        self._billing = billing_store
        self._monthly_price = monthly_price
        self._currency = currency
        self._success_url = success_url
        self._cancel_url = cancel_url

    async def start_checkout(self, user_id: int, plan: str) -> CheckoutResult:
        try:
            target = SubscriptionPlan(plan)
        except ValueError as e:
            raise ValidationError("plan", "Unknown subscription plan", plan) from e

        if target == SubscriptionPlan.FREE:
            raise ValidationError("plan", "The free plan needs no checkout", plan)

        if target == SubscriptionPlan.PAY_PER_INVOICE:
            user = await self._users.get_user(user_id)
            if user is None:
                raise ValidationError("user_id", "Unknown user", user_id)
            user.plan = target
            user.plan_activated_at = datetime.now()
            await self._users.update_user(user)
            logger.info("plan_activated", user_id=user_id, plan=target.value)
            return CheckoutResult(plan=target, activated=True)

        session = await self._provider.create_checkout(
            CheckoutRequest(
                amount=self._monthly_price,
                currency=self._currency,
                description="InvoiceKit Monthly Subscription",
                success_url=self._success_url,
                cancel_url=self._cancel_url,
                metadata={"user_id": str(user_id), "plan": target.value},
            )
        )
        await self._billing.create_record(
            BillingRecord(
                user_id=user_id,
                plan=target,
                amount=self._monthly_price,
                currency=self._currency,
                status=BillingStatus.PENDING,
                session_id=session.session_id,
            )
        )
        logger.info(
            "checkout_session_created",
            user_id=user_id,
            plan=target.value,
            session_id=session.session_id,
        )
        return CheckoutResult(
            plan=target,
            activated=False,
            session_id=session.session_id,
            url=session.url,
        )
