"""SQLite storage implementations."""

from invoicekit.infrastructure.storage.sqlite.client_store import (
    SQLiteClientStore,
    SQLiteEstimateStore,
)
from invoicekit.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from invoicekit.infrastructure.storage.sqlite.invoice_store import (
    SQLiteInvoicePaymentStore,
    SQLiteInvoiceStore,
)
from invoicekit.infrastructure.storage.sqlite.reminder_store import SQLiteReminderStore
from invoicekit.infrastructure.storage.sqlite.user_store import (
    SQLiteBillingStore,
    SQLiteUserStore,
)

# Singleton instances
_client_store: SQLiteClientStore | None = None
_estimate_store: SQLiteEstimateStore | None = None
_invoice_store: SQLiteInvoiceStore | None = None
_payment_store: SQLiteInvoicePaymentStore | None = None
_reminder_store: SQLiteReminderStore | None = None
_user_store: SQLiteUserStore | None = None
_billing_store: SQLiteBillingStore | None = None


async def get_client_store() -> SQLiteClientStore:
    """Get singleton client store instance."""
    global _client_store
    if _client_store is None:
        _client_store = SQLiteClientStore()
    return _client_store


async def get_estimate_store() -> SQLiteEstimateStore:
    """Get singleton estimate store instance."""
    global _estimate_store
    if _estimate_store is None:
        _estimate_store = SQLiteEstimateStore()
    return _estimate_store


async def get_invoice_store() -> SQLiteInvoiceStore:
    """Get singleton invoice store instance."""
    global _invoice_store
    if _invoice_store is None:
        _invoice_store = SQLiteInvoiceStore()
    return _invoice_store


async def get_invoice_payment_store() -> SQLiteInvoicePaymentStore:
    """Get singleton invoice payment store instance."""
    global _payment_store
    if _payment_store is None:
        _payment_store = SQLiteInvoicePaymentStore()
    return _payment_store


async def get_reminder_store() -> SQLiteReminderStore:
    """Get singleton reminder store instance."""
    global _reminder_store
    if _reminder_store is None:
        _reminder_store = SQLiteReminderStore()
    return _reminder_store


async def get_user_store() -> SQLiteUserStore:
    """Get singleton user store instance."""
    global _user_store
    if _user_store is None:
        _user_store = SQLiteUserStore()
    return _user_store


async def get_billing_store() -> SQLiteBillingStore:
    """Get singleton billing store instance."""
    global _billing_store
    if _billing_store is None:
        _billing_store = SQLiteBillingStore()
    return _billing_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteClientStore",
    "SQLiteEstimateStore",
    "SQLiteInvoiceStore",
    "SQLiteInvoicePaymentStore",
    "SQLiteReminderStore",
    "SQLiteUserStore",
    "SQLiteBillingStore",
    # Factory functions
    "get_client_store",
    "get_estimate_store",
    "get_invoice_store",
    "get_invoice_payment_store",
    "get_reminder_store",
    "get_user_store",
    "get_billing_store",
]
