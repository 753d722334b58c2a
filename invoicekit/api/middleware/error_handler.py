"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from invoicekit.application.dto.responses import ErrorResponse
from invoicekit.config import get_logger
from invoicekit.core.exceptions import (
    AuthorizationError,
    ClientNotFoundError,
    ConfigurationError,
    DeliveryError,
    EstimateNotFoundError,
    InvoiceKitError,
    InvoiceNotFoundError,
    PaymentNotFoundError,
    LimitExceededError,
    ReminderConflictError,
    ReminderNotFoundError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Checked in order; the first isinstance match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    InvoiceNotFoundError: status.HTTP_404_NOT_FOUND,
    ReminderNotFoundError: status.HTTP_404_NOT_FOUND,
    ClientNotFoundError: status.HTTP_404_NOT_FOUND,
    EstimateNotFoundError: status.HTTP_404_NOT_FOUND,
    PaymentNotFoundError: status.HTTP_404_NOT_FOUND,
    ReminderConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_401_UNAUTHORIZED,
    LimitExceededError: status.HTTP_403_FORBIDDEN,
    DeliveryError: status.HTTP_502_BAD_GATEWAY,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

HINT_MAP: dict[str, str] = {
    "INVOICE_NOT_FOUND": "Check the invoice ID and try GET /api/invoices to list available invoices.",
    "REMINDER_NOT_FOUND": "Check the reminder ID or provider message id.",
    "REMINDER_CONFLICT": "Another reminder of this invoice and tier already has that status.",
    "CLIENT_NOT_FOUND": "Check the client ID and try GET /api/clients to list your clients.",
    "ESTIMATE_NOT_FOUND": "Check the estimate ID and try GET /api/estimates.",
    "PAYMENT_NOT_FOUND": "List the invoice payments with GET /api/invoices/{id}/payments.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "LIMIT_EXCEEDED": "Upgrade your plan via POST /api/payments/checkout.",
    "UNAUTHORIZED": "Send the cron secret as a Bearer token.",
    "EMAIL_DELIVERY_FAILED": "The email provider rejected the message. Retry later.",
    "PAYMENT_PROVIDER_ERROR": "The payment provider is unavailable. Retry later.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
}

STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    401: "Authentication is required for this endpoint.",
    403: "Your plan does not allow this action.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The change conflicts with existing data.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    502: "An upstream provider failed. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error body."""
    status_code = _status_for(exc)

    if isinstance(exc, InvoiceKitError):
        error_code = exc.code
        message = exc.message
    else:
        error_code = exc.__class__.__name__
        message = str(exc)

    # Unexpected failures never leak internals to the caller
    if status_code >= 500 and not isinstance(exc, InvoiceKitError):
        error_code = "INTERNAL_ERROR"
        message = "Internal server error"

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=str(exc),
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the route-level handlers did not convert.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(InvoiceKitError)
    async def domain_exception_handler(
        request: Request,
        exc: InvoiceKitError,
    ) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code, exc.detail or "")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int, detail: str) -> str:
    """Infer a machine-readable error code from HTTPException detail."""
    detail_lower = detail.lower()

    if status_code == 404:
        for resource in ("invoice", "reminder", "client", "estimate"):
            if resource in detail_lower:
                return f"{resource.upper()}_NOT_FOUND"
        return "NOT_FOUND"

    if status_code == 400:
        return "BAD_REQUEST"
    if status_code == 401:
        return "UNAUTHORIZED"
    if status_code == 422:
        return "UNPROCESSABLE_ENTITY"

    return "HTTP_ERROR"
