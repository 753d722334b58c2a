"""
Structured logging configuration using structlog.

Console output while developing, JSON lines everywhere else. Provider
secrets and recipient addresses are masked before any renderer sees them.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from invoicekit.config.settings import get_settings

SECRET_KEYS = frozenset({"api_key", "authorization", "cron_secret", "token"})
ADDRESS_KEYS = frozenset({"to", "email", "client_email", "recipient"})


def mask_address(address: str) -> str:
    """a***@example.com; anything without an @ is fully masked."""
    local, sep, domain = address.partition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}***@{domain}"


def redact_sensitive(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask provider credentials and client email addresses."""
    for key in SECRET_KEYS & event_dict.keys():
        if event_dict[key]:
            event_dict[key] = "***"
    for key in ADDRESS_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
        elif isinstance(value, list | tuple):
            event_dict[key] = [mask_address(str(v)) for v in value]
    return event_dict


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name.lower())
    event_dict.setdefault("env", settings.environment)
    return event_dict


def configure_logging() -> None:
    """Configure structlog and route stdlib logging through it."""
    settings = get_settings()
    as_json = settings.log_json or settings.environment != "development"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
        redact_sensitive,
    ]
    if as_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    # Provider clients log their own calls; the middleware logs requests
    for noisy in ("httpx", "httpcore", "aiosqlite", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
