"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# --- Clients / estimates / profile ---


class ClientResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime
    updated_at: datetime


class ClientListResponse(BaseModel):
    clients: list[ClientResponse]
    total: int


class EstimateResponse(BaseModel):
    id: int
    estimate_number: str
    client_id: int | None = None
    status: str
    total: float
    currency: str
    valid_until: date | None = None
    notes: str = ""
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    approval_comment: str | None = None
    rejection_reason: str | None = None
    converted_invoice_id: int | None = None
    created_at: datetime


class EstimateListResponse(BaseModel):
    estimates: list[EstimateResponse]
    total: int


class SendEstimateResponse(BaseModel):
    estimate: EstimateResponse
    email_id: str


class BusinessProfileResponse(BaseModel):
    business_name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    logo_url: str | None = None
    updated_at: datetime


# --- Invoices ---


class InvoiceItemResponse(BaseModel):
    description: str
    quantity: float
    unit_price: float
    amount: float = Field(..., description="quantity * unit_price")


class ReminderRuleResponse(BaseModel):
    when: str
    days: int


class InvoiceResponse(BaseModel):
    """Invoice response DTO."""

    id: int
    invoice_number: str
    client_id: int | None = None
    client_name: str | None = None
    client_email: str | None = None
    status: str
    issue_date: date
    due_date: date | None = None
    overdue_days: int = Field(default=0, description="Days past due; 0 when not overdue")
    total: float
    currency: str
    payment_terms: str
    notes: str = ""
    template_id: int
    color_preset: int
    reminders_enabled: bool
    reminder_rules: list[ReminderRuleResponse] = Field(default_factory=list)
    items: list[InvoiceItemResponse] = Field(default_factory=list)
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceResponse]
    total: int


class SendInvoiceResponse(BaseModel):
    invoice: InvoiceResponse
    email_id: str
    fee_recorded: bool = Field(
        default=False, description="A per-invoice fee was added to the billing ledger"
    )


class BulkMarkPaidResponse(BaseModel):
    count: int
    invoice_numbers: list[str]
    skipped: list[int] = Field(default_factory=list)


class ConvertEstimateResponse(BaseModel):
    estimate: EstimateResponse
    invoice: InvoiceResponse


class PaymentResponse(BaseModel):
    id: int
    invoice_id: int
    amount: float
    payment_date: date
    payment_method: str | None = None
    notes: str = ""
    created_at: datetime


class PaymentSummaryResponse(BaseModel):
    invoice_id: int
    invoice_total: float
    total_paid: float
    remaining_balance: float
    payments: list[PaymentResponse]


class RecordPaymentResponse(BaseModel):
    payment: PaymentResponse
    summary: PaymentSummaryResponse
    invoice_status: str


# --- Reminders ---


class ReminderResponse(BaseModel):
    """Reminder response DTO."""

    id: int
    invoice_id: int
    tier: str
    status: str
    overdue_days: int = 0
    scheduled_at: datetime | None = None
    email_id: str | None = None
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class ReminderListResponse(BaseModel):
    """List of reminders."""

    reminders: list[ReminderResponse]
    total: int


class ReminderDecisionResponse(BaseModel):
    invoice_id: int | None = None
    should_create: bool
    tier: str | None = None
    overdue_days: int
    reason: str


class TriggerRemindersResponse(BaseModel):
    """Summary of an overdue-reminder trigger run."""

    evaluated: int
    created: int
    sent: int
    failed: int
    skipped: int
    marked_overdue: int
    dry_run: bool = False
    decisions: list[ReminderDecisionResponse] = Field(default_factory=list)
    reminders: list[ReminderResponse] = Field(default_factory=list)


class SweepResponse(BaseModel):
    """Summary of a deduplication sweep."""

    scanned: int
    duplicate_groups: int
    duplicates_found: int
    duplicates_removed: int
    failed_batches: int
    removed_by_status: dict[str, int] = Field(default_factory=dict)


class ScheduleResponse(BaseModel):
    invoices: int
    scheduled: int
    cleared: int


class InvoiceScheduleResponse(BaseModel):
    invoice_id: int
    cleared: int
    skipped_reason: str | None = None
    reminders: list[ReminderResponse] = Field(default_factory=list)


class AutoSendResponse(BaseModel):
    total_found: int
    processed: int
    success: int
    errors: int
    failures: list[dict] = Field(default_factory=list)


class WebhookAckResponse(BaseModel):
    success: bool = True
    reminder_id: int
    status: str


class ReminderStatsResponse(BaseModel):
    total_reminders: int
    by_tier: dict[str, int]
    by_status: dict[str, int]
    invoices_by_status: dict[str, int]
    total_revenue: float
    success_rate: float = Field(..., description="Percent of attempted sends that succeeded")


# --- Subscription / billing ---


class LimitCheckResponse(BaseModel):
    allowed: bool
    reason: str | None = None
    limit_type: str | None = None


class UsageCounter(BaseModel):
    used: int | None = None
    limit: int | None = None


class UsageResponse(BaseModel):
    plan: str
    invoices: UsageCounter
    clients: UsageCounter
    estimates: UsageCounter
    reminders_per_invoice: UsageCounter


class CheckoutResponse(BaseModel):
    plan: str
    activated: bool
    session_id: str | None = None
    url: str | None = None


class PurgeResponse(BaseModel):
    user_id: int
    total_deleted: int
    deleted: dict[str, int]
    missing_tables: list[str] = Field(default_factory=list)


# --- Health / errors ---


class ComponentHealthResponse(BaseModel):
    """Health status of one dependency."""

    name: str
    available: bool
    latency_ms: float | None = None
    schema_version: str | None = None
    pending_migrations: list[str] = Field(default_factory=list)
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INVOICE_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
