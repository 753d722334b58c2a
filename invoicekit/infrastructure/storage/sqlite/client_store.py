"""SQLite implementations of client and estimate storage."""

from datetime import datetime

import aiosqlite

from invoicekit.config import get_logger
from invoicekit.core.entities import Client, Estimate, EstimateStatus
from invoicekit.core.interfaces.storage import IClientStore, IEstimateStore
from invoicekit.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)
from invoicekit.infrastructure.storage.sqlite.rows import (
    iso,
    parse_date,
    parse_datetime,
)

logger = get_logger(__name__)


class SQLiteClientStore(IClientStore):
    """SQLite implementation of client storage."""

    async def create(self, client: Client) -> Client:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO clients (
                    user_id, name, email, company, phone, address,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    client.user_id,
                    client.name,
                    client.email,
                    client.company,
                    client.phone,
                    client.address,
                    iso(client.created_at),
                    iso(client.updated_at),
                ),
            )
            client.id = cursor.lastrowid
        logger.info("client_created", client_id=client.id, user_id=client.user_id)
        return client

    async def get(self, client_id: int) -> Client | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,))
            row = await cursor.fetchone()
        return self._row_to_entity(row) if row else None

    async def update(self, client: Client) -> Client:
        client.updated_at = datetime.now()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE clients SET
                    name = ?, email = ?, company = ?, phone = ?, address = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    client.name,
                    client.email,
                    client.company,
                    client.phone,
                    client.address,
                    iso(client.updated_at),
                    client.id,
                ),
            )
        logger.info("client_updated", client_id=client.id)
        return client

    async def delete(self, client_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute("DELETE FROM clients WHERE id = ?", (client_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("client_deleted", client_id=client_id)
        return deleted

    async def list_clients(
        self, user_id: int, limit: int = 100, offset: int = 0
    ) -> list[Client]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM clients WHERE user_id = ? ORDER BY name LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def count_clients(self, user_id: int) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM clients WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Client:
        now = datetime.now()
        return Client(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            email=row["email"],
            company=row["company"],
            phone=row["phone"],
            address=row["address"],
            created_at=parse_datetime(row["created_at"], now),
            updated_at=parse_datetime(row["updated_at"], now),
        )


class SQLiteEstimateStore(IEstimateStore):
    """SQLite implementation of estimate storage."""

    async def create(self, estimate: Estimate) -> Estimate:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO estimates (
                    user_id, client_id, estimate_number, status, total,
                    currency, valid_until, notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    estimate.user_id,
                    estimate.client_id,
                    estimate.estimate_number,
                    estimate.status.value,
                    estimate.total,
                    estimate.currency,
                    iso(estimate.valid_until),
                    estimate.notes,
                    iso(estimate.created_at),
                    iso(estimate.updated_at),
                ),
            )
            estimate.id = cursor.lastrowid
        logger.info("estimate_created", estimate_id=estimate.id, user_id=estimate.user_id)
        return estimate

    async def get(self, estimate_id: int) -> Estimate | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM estimates WHERE id = ?", (estimate_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_entity(row) if row else None

    async def update(self, estimate: Estimate) -> Estimate:
        estimate.updated_at = datetime.now()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE estimates SET
                    client_id = ?, estimate_number = ?, status = ?, total = ?,
                    currency = ?, valid_until = ?, notes = ?,
                    approved_at = ?, rejected_at = ?, approval_comment = ?,
                    rejection_reason = ?, converted_invoice_id = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    estimate.client_id,
                    estimate.estimate_number,
                    estimate.status.value,
                    estimate.total,
                    estimate.currency,
                    iso(estimate.valid_until),
                    estimate.notes,
                    iso(estimate.approved_at),
                    iso(estimate.rejected_at),
                    estimate.approval_comment,
                    estimate.rejection_reason,
                    estimate.converted_invoice_id,
                    iso(estimate.updated_at),
                    estimate.id,
                ),
            )
        logger.info("estimate_updated", estimate_id=estimate.id, status=estimate.status.value)
        return estimate

    async def delete(self, estimate_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM estimates WHERE id = ?", (estimate_id,)
            )
            return cursor.rowcount > 0

    async def list_estimates(
        self, user_id: int, limit: int = 100, offset: int = 0
    ) -> list[Estimate]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM estimates WHERE user_id = ?
                ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?
                """,
                (user_id, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def count_estimates(self, user_id: int) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM estimates WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Estimate:
        now = datetime.now()
        return Estimate(
            id=row["id"],
            user_id=row["user_id"],
            client_id=row["client_id"],
            estimate_number=row["estimate_number"],
            status=EstimateStatus(row["status"]),
            total=row["total"] or 0.0,
            currency=row["currency"],
            valid_until=parse_date(row["valid_until"]),
            notes=row["notes"] or "",
            approved_at=parse_datetime(row["approved_at"]),
            rejected_at=parse_datetime(row["rejected_at"]),
            approval_comment=row["approval_comment"],
            rejection_reason=row["rejection_reason"],
            converted_invoice_id=row["converted_invoice_id"],
            created_at=parse_datetime(row["created_at"], now),
            updated_at=parse_datetime(row["updated_at"], now),
        )
