"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from invoicekit import __version__
from invoicekit.application.dto.responses import ComponentHealthResponse, HealthResponse

router = APIRouter(prefix="/api/health", tags=["health"])

_started = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _started, 3)


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: the process is up and serving."""
    return HealthResponse(status="healthy", version=__version__, uptime_seconds=_uptime())


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Readiness: SQLite answers and the schema is current.

    Unapplied migrations report ``degraded``; an unreachable database
    reports ``unhealthy``.
    """
    from invoicekit.infrastructure.storage.sqlite import get_pool
    from invoicekit.infrastructure.storage.sqlite.migrations import get_migration_status

    try:
        pool = await get_pool()
        latency = await pool.ping()
        migrations = await get_migration_status(pool.db_path)
    except Exception as e:
        return HealthResponse(
            status="unhealthy",
            version=__version__,
            uptime_seconds=_uptime(),
            database=ComponentHealthResponse(name="sqlite", available=False, error=str(e)),
        )

    pending = migrations["pending_migrations"]
    return HealthResponse(
        status="degraded" if pending else "healthy",
        version=__version__,
        uptime_seconds=_uptime(),
        database=ComponentHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=latency,
            schema_version=migrations["current_version"],
            pending_migrations=pending,
        ),
    )
