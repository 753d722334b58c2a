"""User account, business profile, and billing entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SubscriptionPlan(str, Enum):
    FREE = "free"
    MONTHLY = "monthly"
    PAY_PER_INVOICE = "pay_per_invoice"


class User(BaseModel):
    """Account owner and their current subscription plan."""

    id: int | None = None
    email: str
    name: str | None = None
    plan: SubscriptionPlan = SubscriptionPlan.FREE
    plan_activated_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class BusinessProfile(BaseModel):
    """Sender details printed on invoices and reminder emails."""

    user_id: int
    business_name: str = ""
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    logo_url: str | None = None
    updated_at: datetime = Field(default_factory=datetime.now)


class BillingStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class BillingKind(str, Enum):
    SUBSCRIPTION = "subscription"
    INVOICE_FEE = "invoice_fee"


class BillingRecord(BaseModel):
    """Subscription payment attempt or per-invoice fee."""

    id: int | None = None
    user_id: int
    plan: SubscriptionPlan
    amount: float
    currency: str = "USD"
    status: BillingStatus = BillingStatus.PENDING
    kind: BillingKind = BillingKind.SUBSCRIPTION
    invoice_id: int | None = None
    session_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
