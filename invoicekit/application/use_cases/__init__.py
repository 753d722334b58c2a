"""Application use cases."""

from invoicekit.application.use_cases.auto_send_reminders import (
    AutoSendRemindersUseCase,
    AutoSendResult,
)
from invoicekit.application.use_cases.invoice_payments import (
    DeletePaymentUseCase,
    GetPaymentSummaryUseCase,
    PaymentSummary,
    RecordPaymentResult,
    RecordPaymentUseCase,
)
from invoicekit.application.use_cases.manage_estimates import (
    ApproveEstimateUseCase,
    ConvertEstimateResult,
    ConvertEstimateUseCase,
    RejectEstimateUseCase,
    SendEstimateResult,
    SendEstimateUseCase,
)
from invoicekit.application.use_cases.manage_invoices import (
    BulkMarkPaidResult,
    BulkMarkPaidUseCase,
    CreateInvoiceUseCase,
    MarkInvoicePaidUseCase,
    SendInvoiceResult,
    SendInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from invoicekit.application.use_cases.reminder_stats import (
    GetReminderStatsUseCase,
    ReminderStats,
)
from invoicekit.application.use_cases.schedule_reminders import (
    ScheduleRemindersUseCase,
    ScheduleRunResult,
)
from invoicekit.application.use_cases.trigger_overdue_reminders import (
    TriggerOverdueRemindersUseCase,
    TriggerResult,
)

__all__ = [
    "TriggerOverdueRemindersUseCase",
    "TriggerResult",
    "AutoSendRemindersUseCase",
    "AutoSendResult",
    "ScheduleRemindersUseCase",
    "ScheduleRunResult",
    "GetReminderStatsUseCase",
    "ReminderStats",
    # Invoices
    "CreateInvoiceUseCase",
    "UpdateInvoiceUseCase",
    "MarkInvoicePaidUseCase",
    "BulkMarkPaidUseCase",
    "BulkMarkPaidResult",
    "SendInvoiceUseCase",
    "SendInvoiceResult",
    # Payments
    "RecordPaymentUseCase",
    "RecordPaymentResult",
    "DeletePaymentUseCase",
    "GetPaymentSummaryUseCase",
    "PaymentSummary",
    # Estimates
    "SendEstimateUseCase",
    "SendEstimateResult",
    "ApproveEstimateUseCase",
    "RejectEstimateUseCase",
    "ConvertEstimateUseCase",
    "ConvertEstimateResult",
]
