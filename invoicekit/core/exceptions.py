"""
Domain exceptions for invoicekit.

Each exception carries a machine-readable code that the API layer maps
to an HTTP status and recovery hint.
"""

from typing import Any


class InvoiceKitError(Exception):
    """Base exception for all invoicekit errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(InvoiceKitError):
    """Base exception for storage operations."""

    pass


class InvoiceNotFoundError(StorageError):
    """Invoice not found in storage."""

    def __init__(self, invoice_id: int):
        super().__init__(
            f"Invoice not found: {invoice_id}",
            code="INVOICE_NOT_FOUND",
            details={"invoice_id": invoice_id},
        )


class ReminderNotFoundError(StorageError):
    """Reminder not found, by id or by provider message id."""

    def __init__(self, reminder_id: int | None = None, email_id: str | None = None):
        ref = f"email_id={email_id}" if email_id else str(reminder_id)
        super().__init__(
            f"Reminder not found: {ref}",
            code="REMINDER_NOT_FOUND",
            details={"reminder_id": reminder_id, "email_id": email_id},
        )


class ReminderConflictError(StorageError):
    """Another reminder already holds the (invoice, tier, status) key."""

    def __init__(self, reminder_id: int | None, existing_id: int, tier: str, status: str):
        super().__init__(
            f"Reminder {reminder_id} cannot become {tier}/{status}: "
            f"reminder {existing_id} already is",
            code="REMINDER_CONFLICT",
            details={
                "reminder_id": reminder_id,
                "existing_id": existing_id,
                "tier": tier,
                "status": status,
            },
        )
        self.reminder_id = reminder_id
        self.existing_id = existing_id


class ClientNotFoundError(StorageError):
    """Client not found in storage."""

    def __init__(self, client_id: int):
        super().__init__(
            f"Client not found: {client_id}",
            code="CLIENT_NOT_FOUND",
            details={"client_id": client_id},
        )


class EstimateNotFoundError(StorageError):
    """Estimate not found in storage."""

    def __init__(self, estimate_id: int):
        super().__init__(
            f"Estimate not found: {estimate_id}",
            code="ESTIMATE_NOT_FOUND",
            details={"estimate_id": estimate_id},
        )


class PaymentNotFoundError(StorageError):
    """Recorded payment not found on the invoice."""

    def __init__(self, payment_id: int):
        super().__init__(
            f"Payment not found: {payment_id}",
            code="PAYMENT_NOT_FOUND",
            details={"payment_id": payment_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class TableNotFoundError(StorageError):
    """Store reported a missing table."""

    def __init__(self, table: str):
        super().__init__(
            f"Table not found: {table}",
            code="TABLE_NOT_FOUND",
            details={"table": table},
        )


# Delivery Exceptions
class DeliveryError(InvoiceKitError):
    """Base exception for outbound provider calls."""

    pass


class EmailDeliveryError(DeliveryError):
    """Email provider rejected or failed a send."""

    def __init__(self, recipient: str, error: str, status_code: int | None = None):
        super().__init__(
            f"Email delivery to {recipient} failed: {error}",
            code="EMAIL_DELIVERY_FAILED",
            details={
                "recipient": recipient,
                "error": error,
                "status_code": status_code,
            },
        )


class PaymentProviderError(DeliveryError):
    """Payment provider failed to create a checkout session."""

    def __init__(self, error: str, status_code: int | None = None):
        super().__init__(
            f"Payment provider error: {error}",
            code="PAYMENT_PROVIDER_ERROR",
            details={"error": error, "status_code": status_code},
        )


# Subscription Exceptions
class LimitExceededError(InvoiceKitError):
    """A subscription plan limit blocks the requested write."""

    def __init__(self, limit_type: str, reason: str, plan: str | None = None):
        super().__init__(
            reason,
            code="LIMIT_EXCEEDED",
            details={"limit_type": limit_type, "plan": plan},
        )
        self.limit_type = limit_type


# Validation / access
class ValidationError(InvoiceKitError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class AuthorizationError(InvoiceKitError):
    """Caller is not allowed to invoke the operation."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class ConfigurationError(InvoiceKitError):
    """Configuration error."""

    pass
