"""Core domain entities."""

from invoicekit.core.entities.account import (
    BillingKind,
    BillingRecord,
    BillingStatus,
    BusinessProfile,
    SubscriptionPlan,
    User,
)
from invoicekit.core.entities.client import (
    UNDECIDED_ESTIMATE_STATUSES,
    Client,
    Estimate,
    EstimateStatus,
)
from invoicekit.core.entities.invoice import (
    Invoice,
    InvoiceItem,
    InvoicePayment,
    InvoiceStatus,
    ReminderRule,
)
from invoicekit.core.entities.reminder import (
    ACTIVE_REMINDER_STATUSES,
    DEFAULT_TIER_BANDS,
    TIER_ORDER,
    Reminder,
    ReminderStatus,
    ReminderTier,
    TierBand,
)

__all__ = [
    # Invoice entities
    "Invoice",
    "InvoiceItem",
    "InvoicePayment",
    "InvoiceStatus",
    "ReminderRule",
    # Reminder entities
    "Reminder",
    "ReminderStatus",
    "ReminderTier",
    "TierBand",
    "DEFAULT_TIER_BANDS",
    "TIER_ORDER",
    "ACTIVE_REMINDER_STATUSES",
    # Client entities
    "Client",
    "Estimate",
    "EstimateStatus",
    "UNDECIDED_ESTIMATE_STATUSES",
    # Account entities
    "User",
    "SubscriptionPlan",
    "BusinessProfile",
    "BillingKind",
    "BillingRecord",
    "BillingStatus",
]
