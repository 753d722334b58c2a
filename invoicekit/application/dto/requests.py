"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the only contracts between API handlers and use cases.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

InvoiceStatusLiteral = Literal["draft", "sent", "pending", "overdue", "paid"]


# --- Clients ---


class CreateClientRequest(BaseModel):
    """Request to add a client."""

    name: str = Field(..., min_length=1, description="Client display name")
    email: str | None = Field(default=None, description="Billing email address")
    company: str | None = Field(default=None, description="Company name")
    phone: str | None = Field(default=None, description="Phone number")
    address: str | None = Field(default=None, description="Postal address")


class UpdateClientRequest(BaseModel):
    """Request to update a client; omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    address: str | None = None


# --- Invoices ---


class InvoiceItemRequest(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(default=1.0, gt=0)
    unit_price: float = Field(default=0.0, ge=0)


class ReminderRuleRequest(BaseModel):
    when: Literal["before", "after"] = Field(
        default="after", description="Send before or after the due date"
    )
    days: int = Field(..., ge=0, le=365, description="Offset in days")


class CreateInvoiceRequest(BaseModel):
    """Request to create an invoice."""

    invoice_number: str = Field(..., min_length=1, examples=["INV-0001"])
    client_id: int | None = Field(default=None, description="Client to bill")
    status: InvoiceStatusLiteral = Field(default="draft")
    issue_date: date | None = Field(default=None, description="Defaults to today")
    due_date: date | None = Field(default=None)
    total: float | None = Field(
        default=None, ge=0, description="Defaults to the sum of the items"
    )
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payment_terms: str = Field(
        default="Net 30",
        examples=["Due on Receipt", "Net 15", "Net 30", "Net 60"],
    )
    notes: str = Field(default="")
    template_id: int = Field(default=1, ge=1)
    color_preset: int = Field(default=0, ge=0)
    reminders_enabled: bool = Field(default=True)
    reminder_rules: list[ReminderRuleRequest] = Field(default_factory=list)
    items: list[InvoiceItemRequest] = Field(default_factory=list)


class UpdateInvoiceRequest(BaseModel):
    """Request to update an invoice; omitted fields are unchanged."""

    invoice_number: str | None = Field(default=None, min_length=1)
    client_id: int | None = None
    status: InvoiceStatusLiteral | None = None
    issue_date: date | None = None
    due_date: date | None = None
    total: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    payment_terms: str | None = None
    notes: str | None = None
    template_id: int | None = Field(default=None, ge=1)
    color_preset: int | None = Field(default=None, ge=0)
    reminders_enabled: bool | None = None
    reminder_rules: list[ReminderRuleRequest] | None = None
    items: list[InvoiceItemRequest] | None = None


class BulkMarkPaidRequest(BaseModel):
    invoice_ids: list[int] = Field(..., min_length=1, max_length=100)


class RecordPaymentRequest(BaseModel):
    """Money received against an invoice."""

    amount: float = Field(..., description="Must be greater than zero")
    payment_date: date | None = Field(default=None, description="Defaults to today")
    payment_method: str | None = Field(default=None, examples=["bank_transfer", "card"])
    notes: str = ""


# --- Estimates ---


class CreateEstimateRequest(BaseModel):
    estimate_number: str = Field(..., min_length=1, examples=["EST-0001"])
    client_id: int | None = None
    total: float = Field(default=0.0, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    valid_until: date | None = None
    notes: str = ""


class UpdateEstimateRequest(BaseModel):
    estimate_number: str | None = Field(default=None, min_length=1)
    client_id: int | None = None
    status: Literal["draft", "sent"] | None = Field(
        default=None, description="Decisions go through approve, reject and convert"
    )
    total: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    valid_until: date | None = None
    notes: str | None = None


class ApproveEstimateRequest(BaseModel):
    comment: str | None = Field(default=None, max_length=2000)


class RejectEstimateRequest(BaseModel):
    reason: str = Field(default="", max_length=2000, description="Required")


class ConvertEstimateRequest(BaseModel):
    invoice_number: str | None = Field(
        default=None, min_length=1, description="Defaults to the next INV-NNNN"
    )


# --- Business profile ---


class BusinessProfileRequest(BaseModel):
    """Sender details shown on invoices and reminder emails."""

    business_name: str = Field(default="")
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    logo_url: str | None = None


# --- Reminders ---


class UpdateReminderStatusRequest(BaseModel):
    """Manual reminder status override.

    ``status`` is validated by the delivery service so an unknown value
    yields a 400 with the allowed list.
    """

    status: str = Field(..., examples=["sent", "delivered", "failed"])
    failure_reason: str | None = Field(default=None)


class WebhookEventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    email_id: str | None = Field(default=None, description="Provider message id")
    reason: str | None = Field(default=None, description="Provider failure reason")


class DeliveryWebhookRequest(BaseModel):
    """Delivery-status event posted by the email provider."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., examples=["email.delivered", "email.bounced"])
    data: WebhookEventData = Field(default_factory=WebhookEventData)


class TriggerRemindersRequest(BaseModel):
    today: date | None = Field(default=None, description="Evaluation date override")
    dry_run: bool = Field(default=False, description="Report decisions only")


class SweepRequest(BaseModel):
    statuses: list[Literal["scheduled", "sent", "delivered", "failed", "bounced"]] | None = (
        Field(default=None, description="Restrict the sweep to these statuses")
    )


# --- Billing ---


class CheckoutRequestDTO(BaseModel):
    plan: str = Field(..., examples=["monthly", "pay_per_invoice"])
