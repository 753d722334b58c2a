"""Core domain services."""

from invoicekit.core.services.account_purge import (
    PURGE_ORDER,
    AccountPurgeService,
    PurgeResult,
)
from invoicekit.core.services.billing import CheckoutResult, CheckoutService
from invoicekit.core.services.invoice_mailer import (
    InvoiceMailer,
    render_estimate_email,
    render_invoice_email,
)
from invoicekit.core.services.invoice_pdf import (
    IInvoicePdfRenderer,
    InvoicePdfResult,
    InvoicePdfService,
)
from invoicekit.core.services.reminder_delivery import (
    WEBHOOK_EVENTS,
    DeliveryStatusService,
    ReminderDispatcher,
)
from invoicekit.core.services.reminder_rules import (
    ReminderDecision,
    ReminderRuleEvaluator,
    compute_overdue_days,
    tier_for_overdue_days,
)
from invoicekit.core.services.reminder_scheduler import (
    SMART_SCHEDULES,
    ReminderScheduler,
    ScheduleResult,
    build_schedule,
)
from invoicekit.core.services.reminder_sweep import (
    ReminderDeduplicationSweep,
    SweepResult,
    find_redundant,
)
from invoicekit.core.services.reminder_templates import render_reminder_email
from invoicekit.core.services.subscription_limits import (
    PLAN_LIMITS,
    SubscriptionLimitService,
    UsageStats,
    ValidationResult,
)

__all__ = [
    # Reminder rules
    "ReminderRuleEvaluator",
    "ReminderDecision",
    "compute_overdue_days",
    "tier_for_overdue_days",
    # Sweep
    "ReminderDeduplicationSweep",
    "SweepResult",
    "find_redundant",
    # Scheduling
    "ReminderScheduler",
    "ScheduleResult",
    "SMART_SCHEDULES",
    "build_schedule",
    # Delivery
    "ReminderDispatcher",
    "DeliveryStatusService",
    "WEBHOOK_EVENTS",
    "render_reminder_email",
    "InvoiceMailer",
    "render_invoice_email",
    "render_estimate_email",
    # Subscription
    "SubscriptionLimitService",
    "ValidationResult",
    "UsageStats",
    "PLAN_LIMITS",
    # PDF
    "IInvoicePdfRenderer",
    "InvoicePdfService",
    "InvoicePdfResult",
    # Billing / account
    "CheckoutService",
    "CheckoutResult",
    "AccountPurgeService",
    "PurgeResult",
]
