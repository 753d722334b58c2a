"""
SQLite implementation of reminder storage.

The (invoice_id, tier, status) key is unique (migration v002). Inserts
that may race use ``create_if_absent``. An update that would collide
with another row raises ``ReminderConflictError`` and leaves both rows
untouched; callers decide which one survives.

Reads that take ``user_id`` only see reminders of that user's invoices.
"""

from datetime import datetime

import aiosqlite

from invoicekit.config import get_logger
from invoicekit.core.entities import Reminder, ReminderStatus, ReminderTier
from invoicekit.core.exceptions import ReminderConflictError
from invoicekit.core.interfaces.storage import IReminderStore
from invoicekit.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)
from invoicekit.infrastructure.storage.sqlite.rows import iso, parse_datetime

logger = get_logger(__name__)

_COLUMNS = (
    "invoice_id, tier, status, overdue_days, scheduled_at, "
    "email_id, failure_reason, created_at, updated_at"
)


def _owner_filter(user_id: int | None) -> tuple[str, tuple]:
    """JOIN and WHERE head restricting ``r`` to one user's invoices."""
    if user_id is None:
        return "WHERE 1 = 1", ()
    return "JOIN invoices i ON i.id = r.invoice_id WHERE i.user_id = ?", (user_id,)


class SQLiteReminderStore(IReminderStore):
    """SQLite implementation of reminder storage."""

    @staticmethod
    def _values(reminder: Reminder) -> tuple:
        return (
            reminder.invoice_id,
            reminder.tier.value,
            reminder.status.value,
            reminder.overdue_days,
            iso(reminder.scheduled_at),
            reminder.email_id,
            reminder.failure_reason,
            iso(reminder.created_at),
            iso(reminder.updated_at),
        )

    async def create(self, reminder: Reminder) -> Reminder:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                f"INSERT INTO reminders ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._values(reminder),
            )
            reminder.id = cursor.lastrowid
        logger.info(
            "reminder_created",
            reminder_id=reminder.id,
            invoice_id=reminder.invoice_id,
            tier=reminder.tier.value,
            status=reminder.status.value,
        )
        return reminder

    async def create_if_absent(self, reminder: Reminder) -> Reminder | None:
        # Single statement, so the existence check and insert cannot interleave
        async with get_transaction() as conn:
            cursor = await conn.execute(
                f"""
                INSERT OR IGNORE INTO reminders ({_COLUMNS})
                SELECT ?, ?, ?, ?, ?, ?, ?, ?, ?
                WHERE NOT EXISTS (
                    SELECT 1 FROM reminders
                    WHERE invoice_id = ? AND tier = ? AND status = ?
                )
                """,
                self._values(reminder)
                + (reminder.invoice_id, reminder.tier.value, reminder.status.value),
            )
            if cursor.rowcount == 0:
                logger.info(
                    "reminder_insert_suppressed",
                    invoice_id=reminder.invoice_id,
                    tier=reminder.tier.value,
                    status=reminder.status.value,
                )
                return None
            reminder.id = cursor.lastrowid
        logger.info(
            "reminder_created",
            reminder_id=reminder.id,
            invoice_id=reminder.invoice_id,
            tier=reminder.tier.value,
            status=reminder.status.value,
        )
        return reminder

    async def get(self, reminder_id: int, user_id: int | None = None) -> Reminder | None:
        owner, params = _owner_filter(user_id)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT r.* FROM reminders r {owner} AND r.id = ?",
                (*params, reminder_id),
            )
            row = await cursor.fetchone()
        return self._row_to_entity(row) if row else None

    async def get_by_email_id(self, email_id: str) -> Reminder | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE email_id = ? ORDER BY id DESC LIMIT 1",
                (email_id,),
            )
            row = await cursor.fetchone()
        return self._row_to_entity(row) if row else None

    async def update(self, reminder: Reminder) -> Reminder:
        reminder.updated_at = datetime.now()
        async with get_transaction(immediate=True) as conn:
            cursor = await conn.execute(
                """
                SELECT id, email_id FROM reminders
                WHERE invoice_id = ? AND tier = ? AND status = ? AND id != ?
                """,
                (
                    reminder.invoice_id,
                    reminder.tier.value,
                    reminder.status.value,
                    reminder.id,
                ),
            )
            existing = await cursor.fetchone()
            if existing is not None:
                raise ReminderConflictError(
                    reminder_id=reminder.id,
                    existing_id=existing["id"],
                    tier=reminder.tier.value,
                    status=reminder.status.value,
                )
            await conn.execute(
                """
                UPDATE reminders SET
                    tier = ?, status = ?, overdue_days = ?, scheduled_at = ?,
                    email_id = ?, failure_reason = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    reminder.tier.value,
                    reminder.status.value,
                    reminder.overdue_days,
                    iso(reminder.scheduled_at),
                    reminder.email_id,
                    reminder.failure_reason,
                    iso(reminder.updated_at),
                    reminder.id,
                ),
            )
        logger.info(
            "reminder_updated",
            reminder_id=reminder.id,
            status=reminder.status.value,
        )
        return reminder

    async def delete(self, reminder_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM reminders WHERE id = ?", (reminder_id,)
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("reminder_deleted", reminder_id=reminder_id)
        return deleted

    async def delete_many(self, reminder_ids: list[int]) -> int:
        if not reminder_ids:
            return 0
        placeholders = ", ".join("?" for _ in reminder_ids)
        async with get_transaction() as conn:
            cursor = await conn.execute(
                f"DELETE FROM reminders WHERE id IN ({placeholders})",
                tuple(reminder_ids),
            )
            return cursor.rowcount

    async def delete_scheduled_for_invoice(self, invoice_id: int) -> int:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM reminders WHERE invoice_id = ? AND status = ?",
                (invoice_id, ReminderStatus.SCHEDULED.value),
            )
            return cursor.rowcount

    async def list_for_invoice(self, invoice_id: int) -> list[Reminder]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE invoice_id = ? "
                "ORDER BY created_at DESC, id DESC",
                (invoice_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def list_reminders(
        self,
        status: ReminderStatus | None = None,
        invoice_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
        user_id: int | None = None,
    ) -> list[Reminder]:
        owner, owner_params = _owner_filter(user_id)
        clauses: list[str] = []
        params: list = [*owner_params]
        if status is not None:
            clauses.append("r.status = ?")
            params.append(status.value)
        if invoice_id is not None:
            clauses.append("r.invoice_id = ?")
            params.append(invoice_id)
        extra = "".join(f" AND {c}" for c in clauses)

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT r.* FROM reminders r {owner}{extra}
                ORDER BY r.created_at DESC, r.id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def list_all(
        self, statuses: list[ReminderStatus] | None = None
    ) -> list[Reminder]:
        async with get_connection() as conn:
            if statuses:
                placeholders = ", ".join("?" for _ in statuses)
                cursor = await conn.execute(
                    f"SELECT * FROM reminders WHERE status IN ({placeholders})",
                    tuple(s.value for s in statuses),
                )
            else:
                cursor = await conn.execute("SELECT * FROM reminders")
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def list_due(self, now: datetime) -> list[Reminder]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminders
                WHERE status = ? AND scheduled_at IS NOT NULL AND scheduled_at <= ?
                ORDER BY scheduled_at ASC
                """,
                (ReminderStatus.SCHEDULED.value, now.isoformat()),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def count_sent_for_invoice(self, invoice_id: int) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM reminders WHERE invoice_id = ? AND status IN (?, ?)",
                (invoice_id, ReminderStatus.SENT.value, ReminderStatus.DELIVERED.value),
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def count_by_tier(self, user_id: int | None = None) -> dict[str, int]:
        return await self._count_grouped("tier", user_id)

    async def count_by_status(self, user_id: int | None = None) -> dict[str, int]:
        return await self._count_grouped("status", user_id)

    async def _count_grouped(self, column: str, user_id: int | None) -> dict[str, int]:
        owner, params = _owner_filter(user_id)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT r.{column}, COUNT(*) FROM reminders r {owner} GROUP BY r.{column}",
                params,
            )
            rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Reminder:
        now = datetime.now()
        return Reminder(
            id=row["id"],
            invoice_id=row["invoice_id"],
            tier=ReminderTier(row["tier"] or ReminderTier.FRIENDLY.value),
            status=ReminderStatus(row["status"]),
            overdue_days=row["overdue_days"] or 0,
            scheduled_at=parse_datetime(row["scheduled_at"]),
            email_id=row["email_id"],
            failure_reason=row["failure_reason"],
            created_at=parse_datetime(row["created_at"], now),
            updated_at=parse_datetime(row["updated_at"], now),
        )
