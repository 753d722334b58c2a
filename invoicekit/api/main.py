"""
FastAPI application factory.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoicekit import __version__
from invoicekit.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from invoicekit.api.middleware.error_handler import setup_exception_handlers
from invoicekit.api.routes import (
    clients_router,
    estimates_router,
    health_router,
    invoices_router,
    payments_router,
    profile_router,
    reminders_router,
    subscription_router,
)
from invoicekit.config import Settings, configure_logging, get_logger, get_settings

logger = get_logger(__name__)

ROUTERS = (
    health_router,
    clients_router,
    invoices_router,
    estimates_router,
    reminders_router,
    profile_router,
    subscription_router,
    payments_router,
)


def check_configuration(settings: Settings) -> None:
    """
    Validate the tier table and warn about unset provider credentials.

    Raises:
        ConfigurationError: configured tier bands overlap
    """
    from invoicekit.application.services import configured_tier_bands
    from invoicekit.core.services.reminder_rules import validate_tier_bands

    bands = validate_tier_bands(configured_tier_bands())
    logger.info("tier_bands_loaded", tiers=[b.tier.value for b in bands])

    if not settings.email.api_key:
        logger.warning("email_api_key_missing", detail="reminder delivery will fail")
    if not settings.payment.api_key:
        logger.warning("payment_api_key_missing", detail="checkout will fail")
    if not settings.api.cron_secret and settings.environment == "production":
        logger.warning("cron_secret_missing", detail="cron endpoints are unauthenticated")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Migrate and open the pool on startup; close it on shutdown."""
    from invoicekit.infrastructure.storage.sqlite import close_pool, get_pool
    from invoicekit.infrastructure.storage.sqlite.migrations import run_migrations

    settings = get_settings()
    logger.info("application_starting", environment=settings.environment, version=__version__)

    check_configuration(settings)
    try:
        applied = [r for r in await run_migrations() if r.success]
        pool = await get_pool()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise
    logger.info("database_ready", db_path=str(pool.db_path), migrations_applied=len(applied))

    yield

    await close_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Invoicing, payment reminders, and subscription billing for freelancers",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: errors are rendered inside the logged span
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Authorization", "Content-Type", "X-User-Id", "X-Request-ID"],
            expose_headers=["X-Request-ID", "X-Response-Time"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    return app


app = create_app()


def serve() -> None:
    """``invoicekit-api`` entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "invoicekit.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    serve()
