"""Invoice entities."""

from datetime import date, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"


class ReminderRule(BaseModel):
    """User-defined reminder offset relative to the due date."""

    when: Literal["before", "after"] = "after"
    days: int = Field(..., ge=0)

    @property
    def offset_days(self) -> int:
        return -self.days if self.when == "before" else self.days


class InvoiceItem(BaseModel):
    """Single billable line on an invoice."""

    id: int | None = None
    invoice_id: int | None = None
    description: str
    quantity: float = 1.0
    unit_price: float = 0.0

    @property
    def amount(self) -> float:
        return round(self.quantity * self.unit_price, 2)


class Invoice(BaseModel):
    """
    Invoice issued by a user to one of their clients.

    ``client_name`` and ``client_email`` are denormalized from the client
    row when the invoice is loaded, so reminder delivery does not need a
    second lookup.
    """

    id: int | None = None
    user_id: int
    client_id: int | None = None
    invoice_number: str
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date = Field(default_factory=date.today)
    due_date: date | None = None
    total: float = 0.0
    currency: str = "USD"
    payment_terms: str = "Net 30"
    notes: str = ""
    template_id: int = 1
    color_preset: int = 0

    reminders_enabled: bool = True
    reminder_rules: list[ReminderRule] = Field(default_factory=list)
    items: list[InvoiceItem] = Field(default_factory=list)

    client_name: str | None = None
    client_email: str | None = None

    paid_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def is_draft(self) -> bool:
        return self.status == InvoiceStatus.DRAFT

    @property
    def items_total(self) -> float:
        return round(sum(item.amount for item in self.items), 2)

    def overdue_days(self, today: date | None = None) -> int:
        """Whole calendar days past the due date (negative when not yet due)."""
        if self.due_date is None:
            return 0
        today = today or date.today()
        return (today - self.due_date).days


class InvoicePayment(BaseModel):
    """Money received against an invoice; an invoice may be paid in parts."""

    id: int | None = None
    invoice_id: int
    amount: float = Field(..., gt=0)
    payment_date: date = Field(default_factory=date.today)
    payment_method: str | None = None
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
