"""
Storage interfaces (ports), one per entity.

Services and use cases depend on these so they can be exercised
against in-memory fakes or mocks instead of a live database.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime

from invoicekit.core.entities import (
    BillingRecord,
    BusinessProfile,
    Client,
    Estimate,
    Invoice,
    InvoicePayment,
    InvoiceStatus,
    Reminder,
    ReminderStatus,
    User,
)


class IClientStore(ABC):
    """Abstract interface for client storage."""

    @abstractmethod
    async def create(self, client: Client) -> Client:
        """Create a new client."""
        pass

    @abstractmethod
    async def get(self, client_id: int) -> Client | None:
        """Get client by ID."""
        pass

    @abstractmethod
    async def update(self, client: Client) -> Client:
        """Update an existing client."""
        pass

    @abstractmethod
    async def delete(self, client_id: int) -> bool:
        """Delete client by ID."""
        pass

    @abstractmethod
    async def list_clients(
        self, user_id: int, limit: int = 100, offset: int = 0
    ) -> list[Client]:
        """List a user's clients."""
        pass

    @abstractmethod
    async def count_clients(self, user_id: int) -> int:
        """Count a user's clients."""
        pass


class IInvoiceStore(ABC):
    """
    Abstract interface for invoice storage.

    Handles invoices and their line items.
    """

    @abstractmethod
    async def create_invoice(self, invoice: Invoice) -> Invoice:
        """Create a new invoice with its items."""
        pass

    @abstractmethod
    async def get_invoice(self, invoice_id: int) -> Invoice | None:
        """Get invoice by ID with items and client contact."""
        pass

    @abstractmethod
    async def update_invoice(self, invoice: Invoice) -> Invoice:
        """Update invoice record, replacing its items."""
        pass

    @abstractmethod
    async def update_status(self, invoice_id: int, status: InvoiceStatus) -> bool:
        """Set invoice status only."""
        pass

    @abstractmethod
    async def delete_invoice(self, invoice_id: int) -> bool:
        """Delete invoice and items."""
        pass

    @abstractmethod
    async def list_invoices(
        self,
        user_id: int | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invoice]:
        """List invoices with optional filters."""
        pass

    @abstractmethod
    async def list_overdue_candidates(self, today: date) -> list[Invoice]:
        """Unpaid, non-draft invoices whose due date is before ``today``."""
        pass

    @abstractmethod
    async def list_schedulable(self, user_id: int | None = None) -> list[Invoice]:
        """Invoices with reminders enabled, any status."""
        pass

    @abstractmethod
    async def count_non_draft_since(self, user_id: int, since: datetime) -> int:
        """Count non-draft invoices created at or after ``since``."""
        pass

    @abstractmethod
    async def count_by_status(self, user_id: int | None = None) -> dict[str, int]:
        """Invoice counts keyed by status."""
        pass

    @abstractmethod
    async def total_paid(self, user_id: int | None = None) -> float:
        """Sum of totals over paid invoices."""
        pass


class IInvoicePaymentStore(ABC):
    """Abstract interface for payments recorded against invoices."""

    @abstractmethod
    async def create_within(
        self, payment: InvoicePayment, invoice_total: float
    ) -> InvoicePayment | None:
        """Insert unless the invoice's payments would then exceed ``invoice_total``.

        The check and insert are one statement; returns None when refused.
        """
        pass

    @abstractmethod
    async def get(self, payment_id: int) -> InvoicePayment | None:
        pass

    @abstractmethod
    async def delete(self, payment_id: int) -> bool:
        pass

    @abstractmethod
    async def list_for_invoice(self, invoice_id: int) -> list[InvoicePayment]:
        """Newest payment date first."""
        pass

    @abstractmethod
    async def total_for_invoice(self, invoice_id: int) -> float:
        pass


class IEstimateStore(ABC):
    """Abstract interface for estimate storage."""

    @abstractmethod
    async def create(self, estimate: Estimate) -> Estimate:
        pass

    @abstractmethod
    async def get(self, estimate_id: int) -> Estimate | None:
        pass

    @abstractmethod
    async def update(self, estimate: Estimate) -> Estimate:
        pass

    @abstractmethod
    async def delete(self, estimate_id: int) -> bool:
        pass

    @abstractmethod
    async def list_estimates(
        self, user_id: int, limit: int = 100, offset: int = 0
    ) -> list[Estimate]:
        pass

    @abstractmethod
    async def count_estimates(self, user_id: int) -> int:
        pass


class IReminderStore(ABC):
    """
    Abstract interface for reminder storage.

    ``create_if_absent`` is the atomic conditional insert keyed on
    (invoice, tier, status); ``create`` always inserts.
    """

    @abstractmethod
    async def create(self, reminder: Reminder) -> Reminder:
        """Insert a reminder unconditionally."""
        pass

    @abstractmethod
    async def create_if_absent(self, reminder: Reminder) -> Reminder | None:
        """Insert unless a row with the same (invoice, tier, status) exists.

        Returns None when the insert was suppressed.
        """
        pass

    @abstractmethod
    async def get(self, reminder_id: int, user_id: int | None = None) -> Reminder | None:
        """Get reminder by ID, optionally only if it belongs to ``user_id``."""
        pass

    @abstractmethod
    async def get_by_email_id(self, email_id: str) -> Reminder | None:
        """Find the reminder a provider message id belongs to."""
        pass

    @abstractmethod
    async def update(self, reminder: Reminder) -> Reminder:
        """Update reminder status, ids, and timestamps.

        Raises ReminderConflictError when another row already holds the
        resulting (invoice, tier, status) key.
        """
        pass

    @abstractmethod
    async def delete(self, reminder_id: int) -> bool:
        """Delete a reminder by ID."""
        pass

    @abstractmethod
    async def delete_many(self, reminder_ids: list[int]) -> int:
        """Delete a batch of reminders; returns rows removed."""
        pass

    @abstractmethod
    async def delete_scheduled_for_invoice(self, invoice_id: int) -> int:
        """Delete an invoice's still-scheduled reminders."""
        pass

    @abstractmethod
    async def list_for_invoice(self, invoice_id: int) -> list[Reminder]:
        """All reminders of one invoice, newest first."""
        pass

    @abstractmethod
    async def list_reminders(
        self,
        status: ReminderStatus | None = None,
        invoice_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
        user_id: int | None = None,
    ) -> list[Reminder]:
        """List reminders with optional filters."""
        pass

    @abstractmethod
    async def list_all(
        self, statuses: list[ReminderStatus] | None = None
    ) -> list[Reminder]:
        """Every reminder row, optionally restricted to some statuses."""
        pass

    @abstractmethod
    async def list_due(self, now: datetime) -> list[Reminder]:
        """Scheduled reminders whose scheduled time is at or before ``now``."""
        pass

    @abstractmethod
    async def count_sent_for_invoice(self, invoice_id: int) -> int:
        """Count reminders already sent or delivered for an invoice."""
        pass

    @abstractmethod
    async def count_by_tier(self, user_id: int | None = None) -> dict[str, int]:
        pass

    @abstractmethod
    async def count_by_status(self, user_id: int | None = None) -> dict[str, int]:
        pass


class IUserStore(ABC):
    """
    Abstract interface for user accounts and business profiles.

    Also owns the per-table purge used when an account is deleted.
    """

    @abstractmethod
    async def get_user(self, user_id: int) -> User | None:
        pass

    @abstractmethod
    async def create_user(self, user: User) -> User:
        pass

    @abstractmethod
    async def update_user(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_profile(self, user_id: int) -> BusinessProfile | None:
        pass

    @abstractmethod
    async def upsert_profile(self, profile: BusinessProfile) -> BusinessProfile:
        pass

    @abstractmethod
    async def purge_table(self, table: str, user_id: int) -> int:
        """Delete a user's rows from one table.

        Raises TableNotFoundError when the table does not exist.
        """
        pass


class IBillingStore(ABC):
    """Abstract interface for subscription and per-invoice billing records."""

    @abstractmethod
    async def create_record(self, record: BillingRecord) -> BillingRecord:
        pass

    @abstractmethod
    async def list_records(self, user_id: int) -> list[BillingRecord]:
        pass

    @abstractmethod
    async def find_invoice_fee(self, invoice_id: int) -> BillingRecord | None:
        """The per-invoice fee already recorded for ``invoice_id``, if any."""
        pass
