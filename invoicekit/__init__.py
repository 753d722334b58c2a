"""invoicekit - freelancer invoicing service with overdue reminders."""

__version__ = "1.0.0"
