"""
Subscription plan limits.

Every write that a plan can restrict is checked here first. Checks
return a ValidationResult; ``require`` turns a refusal into
LimitExceededError for the API layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import SubscriptionPlan, User
from invoicekit.core.exceptions import LimitExceededError
from invoicekit.core.interfaces.storage import (
    IClientStore,
    IEstimateStore,
    IInvoiceStore,
    IReminderStore,
    IUserStore,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlanLimits:
    """None means unlimited."""

    invoices: int | None
    clients: int | None
    estimates: int | None
    reminders_per_invoice: int | None
    all_templates: bool
    max_color_preset: int | None


PLAN_LIMITS: dict[SubscriptionPlan, PlanLimits] = {
    SubscriptionPlan.FREE: PlanLimits(
        invoices=5,
        clients=1,
        estimates=1,
        reminders_per_invoice=4,
        all_templates=False,
        max_color_preset=3,
    ),
    # Billed per invoice, so creation is never capped
    SubscriptionPlan.PAY_PER_INVOICE: PlanLimits(
        invoices=None,
        clients=1,
        estimates=1,
        reminders_per_invoice=None,
        all_templates=True,
        max_color_preset=None,
    ),
    SubscriptionPlan.MONTHLY: PlanLimits(
        invoices=None,
        clients=None,
        estimates=None,
        reminders_per_invoice=None,
        all_templates=True,
        max_color_preset=None,
    ),
}

FREE_TEMPLATE_ID = 1


@dataclass
class ValidationResult:
    allowed: bool
    reason: str | None = None
    limit_type: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(allowed=True)


@dataclass
class UsageStats:
    plan: str
    invoices_used: int
    invoices_limit: int | None
    clients_used: int
    clients_limit: int | None
    estimates_used: int
    estimates_limit: int | None
    reminders_per_invoice_limit: int | None

    def to_dict(self) -> dict:
        return {
            "plan": self.plan,
            "invoices": {"used": self.invoices_used, "limit": self.invoices_limit},
            "clients": {"used": self.clients_used, "limit": self.clients_limit},
            "estimates": {"used": self.estimates_used, "limit": self.estimates_limit},
            "reminders_per_invoice": {"limit": self.reminders_per_invoice_limit},
        }


def invoice_period_start(user: User, now: datetime) -> datetime:
    """Start of the window in which invoices are counted for usage.

    Pay-per-invoice counts from activation; every other plan counts the
    current calendar month.
    """
    if user.plan == SubscriptionPlan.PAY_PER_INVOICE and user.plan_activated_at:
        return user.plan_activated_at
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class SubscriptionLimitService:
    """Usage-based gating of writes per subscription plan."""

    def __init__(
        self,
        user_store: IUserStore,
        invoice_store: IInvoiceStore,
        client_store: IClientStore,
        estimate_store: IEstimateStore,
        reminder_store: IReminderStore,
    ) -> None:
        self._users = user_store
        self._invoices = invoice_store
        self._clients = client_store
        self._estimates = estimate_store
        self._reminders = reminder_store

    async def _user(self, user_id: int) -> User:
        user = await self._users.get_user(user_id)
        # Unknown accounts are treated as free
        return user or User(id=user_id, email="", plan=SubscriptionPlan.FREE)

    async def can_create_invoice(
        self, user_id: int, now: datetime | None = None
    ) -> ValidationResult:
        user = await self._user(user_id)
        limits = PLAN_LIMITS[user.plan]
        if limits.invoices is None:
            return ValidationResult.ok()

        since = invoice_period_start(user, now or datetime.now())
        used = await self._invoices.count_non_draft_since(user_id, since)
        if used >= limits.invoices:
            return ValidationResult(
                allowed=False,
                reason=f"Invoice limit reached ({limits.invoices} this month). Upgrade to continue.",
                limit_type="invoices",
            )
        return ValidationResult.ok()

    async def can_add_client(self, user_id: int) -> ValidationResult:
        user = await self._user(user_id)
        limit = PLAN_LIMITS[user.plan].clients
        if limit is not None and await self._clients.count_clients(user_id) >= limit:
            return ValidationResult(
                allowed=False,
                reason=f"Client limit reached ({limit}). Upgrade to add more clients.",
                limit_type="clients",
            )
        return ValidationResult.ok()

    async def can_create_estimate(self, user_id: int) -> ValidationResult:
        user = await self._user(user_id)
        limit = PLAN_LIMITS[user.plan].estimates
        if limit is not None and await self._estimates.count_estimates(user_id) >= limit:
            return ValidationResult(
                allowed=False,
                reason=f"Estimate limit reached ({limit}). Upgrade to create more.",
                limit_type="estimates",
            )
        return ValidationResult.ok()

    async def can_send_reminder(self, user_id: int, invoice_id: int) -> ValidationResult:
        user = await self._user(user_id)
        limit = PLAN_LIMITS[user.plan].reminders_per_invoice
        if limit is None:
            return ValidationResult.ok()
        if await self._reminders.count_sent_for_invoice(invoice_id) >= limit:
            return ValidationResult(
                allowed=False,
                reason=f"Reminder limit reached ({limit} per invoice).",
                limit_type="reminders",
            )
        return ValidationResult.ok()

    async def can_use_template(self, user_id: int, template_id: int) -> ValidationResult:
        user = await self._user(user_id)
        if PLAN_LIMITS[user.plan].all_templates or template_id == FREE_TEMPLATE_ID:
            return ValidationResult.ok()
        return ValidationResult(
            allowed=False,
            reason="This template is available on paid plans only.",
            limit_type="templates",
        )

    async def can_use_color_preset(self, user_id: int, preset: int) -> ValidationResult:
        user = await self._user(user_id)
        max_preset = PLAN_LIMITS[user.plan].max_color_preset
        if max_preset is None or preset <= max_preset:
            return ValidationResult.ok()
        return ValidationResult(
            allowed=False,
            reason="This color preset is available on paid plans only.",
            limit_type="color_presets",
        )

    async def get_usage_stats(
        self, user_id: int, now: datetime | None = None
    ) -> UsageStats:
        user = await self._user(user_id)
        limits = PLAN_LIMITS[user.plan]
        since = invoice_period_start(user, now or datetime.now())
        return UsageStats(
            plan=user.plan.value,
            invoices_used=await self._invoices.count_non_draft_since(user_id, since),
            invoices_limit=limits.invoices,
            clients_used=await self._clients.count_clients(user_id),
            clients_limit=limits.clients,
            estimates_used=await self._estimates.count_estimates(user_id),
            estimates_limit=limits.estimates,
            reminders_per_invoice_limit=limits.reminders_per_invoice,
        )

    async def require(self, result: ValidationResult, user_id: int) -> None:
        """Raise LimitExceededError if the check refused the write."""
        if result.allowed:
            return
        user = await self._user(user_id)
        logger.info(
            "subscription_limit_hit",
            user_id=user_id,
            plan=user.plan.value,
            limit_type=result.limit_type,
        )
        raise LimitExceededError(
            result.limit_type or "unknown",
            result.reason or "Plan limit reached",
            plan=user.plan.value,
        )
