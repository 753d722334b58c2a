"""Unit tests for domain exceptions."""

from invoicekit.core.exceptions import (
    AuthorizationError,
    DatabaseError,
    DeliveryError,
    EmailDeliveryError,
    InvoiceKitError,
    InvoiceNotFoundError,
    LimitExceededError,
    ReminderNotFoundError,
    StorageError,
    TableNotFoundError,
    ValidationError,
)


class TestInvoiceKitError:
    """Tests for the base exception."""

    def test_basic_initialization(self):
        error = InvoiceKitError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "InvoiceKitError"
        assert error.details == {}

    def test_to_dict(self):
        error = InvoiceKitError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestStorageErrors:
    def test_invoice_not_found(self):
        error = InvoiceNotFoundError(42)
        assert isinstance(error, StorageError)
        assert error.code == "INVOICE_NOT_FOUND"
        assert error.details["invoice_id"] == 42
        assert "42" in error.message

    def test_reminder_not_found_by_email_id(self):
        error = ReminderNotFoundError(email_id="msg_123")
        assert error.code == "REMINDER_NOT_FOUND"
        assert "email_id=msg_123" in error.message
        assert error.details == {"reminder_id": None, "email_id": "msg_123"}

    def test_reminder_not_found_by_id(self):
        error = ReminderNotFoundError(reminder_id=7)
        assert error.message == "Reminder not found: 7"

    def test_database_error(self):
        error = DatabaseError("insert", "disk full")
        assert error.code == "DATABASE_ERROR"
        assert "insert" in error.message

    def test_table_not_found(self):
        error = TableNotFoundError("estimates")
        assert isinstance(error, StorageError)
        assert error.details["table"] == "estimates"


class TestOtherErrors:
    def test_email_delivery_error_is_delivery_error(self):
        error = EmailDeliveryError("ada@example.com", "rejected", status_code=422)
        assert isinstance(error, DeliveryError)
        assert error.code == "EMAIL_DELIVERY_FAILED"
        assert error.details["status_code"] == 422

    def test_limit_exceeded_keeps_limit_type(self):
        error = LimitExceededError("invoices", "Invoice limit reached", plan="free")
        assert error.limit_type == "invoices"
        assert error.message == "Invoice limit reached"
        assert error.details["plan"] == "free"

    def test_validation_error_truncates_value(self):
        error = ValidationError("status", "bad", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_authorization_error_default_message(self):
        error = AuthorizationError()
        assert error.code == "UNAUTHORIZED"
        assert error.message == "Unauthorized"
