"""
Shared aiosqlite connections for the stores.

Stores read through ``get_connection`` and write through
``get_transaction``. A write that checks a row before changing it (the
reminder key check, status updates) passes ``immediate=True`` so the
write lock is held from the check onwards. SQLite errors leave this
module as DatabaseError.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from invoicekit.config import get_logger, get_settings
from invoicekit.core.exceptions import DatabaseError

logger = get_logger(__name__)

PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    # Items and reminders cascade from invoices; everything from users
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """Fixed set of connections to one database file, opened on first use."""

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._open_connections: list[aiosqlite.Connection] = []
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return bool(self._open_connections)

    async def initialize(self) -> None:
        async with self._lock:
            if self._open_connections:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                for pragma in (*PRAGMAS, f"PRAGMA busy_timeout={self.busy_timeout}"):
                    await conn.execute(pragma)
                conn.row_factory = aiosqlite.Row
                self._open_connections.append(conn)
                self._idle.put_nowait(conn)
        logger.info("sqlite_pool_opened", db_path=str(self.db_path), size=self.pool_size)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self.initialized:
            await self.initialize()
        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """Commit on success, roll back on any error."""
        async with self.acquire() as conn:
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def ping(self) -> float:
        """Latency of a trivial query in milliseconds."""
        start = time.perf_counter()
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        return (time.perf_counter() - start) * 1000

    async def close(self) -> None:
        async with self._lock:
            while self._open_connections:
                await self._open_connections.pop().close()
            self._idle = asyncio.Queue()
        logger.info("sqlite_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """The process-wide pool for the configured database."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(storage.db_path, storage.pool_size, storage.busy_timeout)
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    try:
        async with pool.acquire() as conn:
            yield conn
    except aiosqlite.Error as e:
        raise DatabaseError("read", str(e)) from e


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    try:
        async with pool.transaction(immediate=immediate) as conn:
            yield conn
    except aiosqlite.Error as e:
        raise DatabaseError("write", str(e)) from e
