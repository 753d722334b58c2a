"""Reminder entity and the overdue tier table."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReminderTier(str, Enum):
    """Escalation level of a payment reminder, mildest first."""

    FRIENDLY = "friendly"
    POLITE = "polite"
    FIRM = "firm"
    URGENT = "urgent"


class ReminderStatus(str, Enum):
    """Lifecycle state of a reminder row."""

    SCHEDULED = "scheduled"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    BOUNCED = "bounced"


# A reminder in one of these states blocks a new one of the same tier
ACTIVE_REMINDER_STATUSES: frozenset[ReminderStatus] = frozenset(
    {ReminderStatus.SCHEDULED, ReminderStatus.SENT, ReminderStatus.DELIVERED}
)

TIER_ORDER: tuple[ReminderTier, ...] = (
    ReminderTier.FRIENDLY,
    ReminderTier.POLITE,
    ReminderTier.FIRM,
    ReminderTier.URGENT,
)


class TierBand(BaseModel):
    """Inclusive range of overdue days mapped to one tier."""

    model_config = ConfigDict(frozen=True)

    tier: ReminderTier
    min_days: int = Field(..., ge=1)
    max_days: int | None = None  # None = no upper bound

    def contains(self, overdue_days: int) -> bool:
        if overdue_days < self.min_days:
            return False
        return self.max_days is None or overdue_days <= self.max_days


DEFAULT_TIER_BANDS: tuple[TierBand, ...] = (
    TierBand(tier=ReminderTier.FRIENDLY, min_days=1, max_days=3),
    TierBand(tier=ReminderTier.POLITE, min_days=4, max_days=7),
    TierBand(tier=ReminderTier.FIRM, min_days=8, max_days=14),
    TierBand(tier=ReminderTier.URGENT, min_days=15),
)


class Reminder(BaseModel):
    """
    Payment reminder for an invoice.

    Rows are created by the overdue trigger or the scheduler, and mutated
    by the auto-send worker and the delivery webhook. ``email_id`` holds
    the provider message id used to match webhook events back to the row.
    """

    id: int | None = None
    invoice_id: int
    tier: ReminderTier = ReminderTier.FRIENDLY
    status: ReminderStatus = ReminderStatus.SCHEDULED
    overdue_days: int = 0
    scheduled_at: datetime | None = None
    email_id: str | None = None
    failure_reason: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_active(self) -> bool:
        """True while the row still blocks another reminder of its tier."""
        return self.status in ACTIVE_REMINDER_STATUSES

    @property
    def sort_time(self) -> datetime:
        """Creation time, falling back to the scheduled time."""
        return self.created_at or self.scheduled_at or datetime.min
