"""Client and estimate entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class Client(BaseModel):
    """A customer the user bills."""

    id: int | None = None
    user_id: int
    name: str
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONVERTED = "converted"


# Statuses an approval or rejection can still be recorded from
UNDECIDED_ESTIMATE_STATUSES = frozenset({EstimateStatus.DRAFT, EstimateStatus.SENT})


class Estimate(BaseModel):
    """Quote sent to a client before work is invoiced."""

    id: int | None = None
    user_id: int
    client_id: int | None = None
    estimate_number: str
    status: EstimateStatus = EstimateStatus.DRAFT
    total: float = 0.0
    currency: str = "USD"
    valid_until: date | None = None
    notes: str = ""

    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    approval_comment: str | None = None
    rejection_reason: str | None = None
    converted_invoice_id: int | None = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_decided(self) -> bool:
        return self.status not in UNDECIDED_ESTIMATE_STATUSES
