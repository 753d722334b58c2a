"""
SQLite implementation of invoice storage.

Invoices are loaded with the client's name and email joined in; line
items are only loaded by ``get_invoice``. Payments recorded against an
invoice live in their own store.
"""

import json
from datetime import date, datetime

import aiosqlite

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    Invoice,
    InvoiceItem,
    InvoicePayment,
    InvoiceStatus,
    ReminderRule,
)
from invoicekit.core.interfaces.storage import IInvoicePaymentStore, IInvoiceStore
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

_SELECT = """
    SELECT i.*, c.name AS client_name, c.email AS client_email
    FROM invoices i
    LEFT JOIN clients c ON c.id = i.client_id
"""

# Statuses that can still become overdue
_OPEN_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.PENDING.value,
    InvoiceStatus.OVERDUE.value,
)


class SQLiteInvoiceStore(IInvoiceStore):
    """SQLite implementation of invoice storage."""

    async def create_invoice(self, invoice: Invoice) -> Invoice:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO invoices (
                    user_id, client_id, invoice_number, status, issue_date,
                    due_date, total, currency, payment_terms, notes,
                    template_id, color_preset, reminders_enabled,
                    reminder_rules, paid_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice.user_id,
                    invoice.client_id,
                    invoice.invoice_number,
                    invoice.status.value,
                    iso(invoice.issue_date),
                    iso(invoice.due_date),
                    invoice.total,
                    invoice.currency,
                    invoice.payment_terms,
                    invoice.notes,
                    invoice.template_id,
                    invoice.color_preset,
                    1 if invoice.reminders_enabled else 0,
                    self._rules_json(invoice),
                    iso(invoice.paid_at),
                    iso(invoice.created_at),
                    iso(invoice.updated_at),
                ),
            )
            invoice.id = cursor.lastrowid
            await self._replace_items(conn, invoice)

        logger.info(
            "invoice_created",
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            items=len(invoice.items),
        )
        return invoice

    async def _replace_items(self, conn: aiosqlite.Connection, invoice: Invoice) -> None:
        await conn.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice.id,))
        for item in invoice.items:
            item.invoice_id = invoice.id
            cursor = await conn.execute(
                """
                INSERT INTO invoice_items (invoice_id, description, quantity, unit_price)
                VALUES (?, ?, ?, ?)
                """,
                (invoice.id, item.description, item.quantity, item.unit_price),
            )
            item.id = cursor.lastrowid

    async def get_invoice(self, invoice_id: int) -> Invoice | None:
        async with get_connection() as conn:
            cursor = await conn.execute(f"{_SELECT} WHERE i.id = ?", (invoice_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            invoice = self._row_to_invoice(row)

            cursor = await conn.execute(
                "SELECT * FROM invoice_items WHERE invoice_id = ? ORDER BY id",
                (invoice_id,),
            )
            invoice.items = [self._row_to_item(r) for r in await cursor.fetchall()]
        return invoice

    async def update_invoice(self, invoice: Invoice) -> Invoice:
        invoice.updated_at = datetime.now()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE invoices SET
                    client_id = ?, invoice_number = ?, status = ?, issue_date = ?,
                    due_date = ?, total = ?, currency = ?, payment_terms = ?,
                    notes = ?, template_id = ?, color_preset = ?,
                    reminders_enabled = ?, reminder_rules = ?, paid_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    invoice.client_id,
                    invoice.invoice_number,
                    invoice.status.value,
                    iso(invoice.issue_date),
                    iso(invoice.due_date),
                    invoice.total,
                    invoice.currency,
                    invoice.payment_terms,
                    invoice.notes,
                    invoice.template_id,
                    invoice.color_preset,
                    1 if invoice.reminders_enabled else 0,
                    self._rules_json(invoice),
                    iso(invoice.paid_at),
                    iso(invoice.updated_at),
                    invoice.id,
                ),
            )
            await self._replace_items(conn, invoice)

        logger.info("invoice_updated", invoice_id=invoice.id, status=invoice.status.value)
        return invoice

    async def update_status(self, invoice_id: int, status: InvoiceStatus) -> bool:
        now = datetime.now()
        paid_at = iso(now) if status == InvoiceStatus.PAID else None
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE invoices
                SET status = ?, paid_at = COALESCE(?, paid_at), updated_at = ?
                WHERE id = ?
                """,
                (status.value, paid_at, iso(now), invoice_id),
            )
            updated = cursor.rowcount > 0
        if updated:
            logger.info("invoice_status_updated", invoice_id=invoice_id, status=status.value)
        return updated

    async def delete_invoice(self, invoice_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("invoice_deleted", invoice_id=invoice_id)
        return deleted

    async def list_invoices(
        self,
        user_id: int | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invoice]:
        clauses: list[str] = []
        params: list = []
        if user_id is not None:
            clauses.append("i.user_id = ?")
            params.append(user_id)
        if status is not None:
            clauses.append("i.status = ?")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{_SELECT} {where} ORDER BY i.created_at DESC, i.id DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_invoice(row) for row in rows]

    async def list_overdue_candidates(self, today: date) -> list[Invoice]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                {_SELECT}
                WHERE i.status IN (?, ?, ?)
                  AND i.due_date IS NOT NULL
                  AND i.due_date < ?
                ORDER BY i.due_date ASC
                """,
                (*_OPEN_STATUSES, today.isoformat()),
            )
            rows = await cursor.fetchall()
        return [self._row_to_invoice(row) for row in rows]

    async def list_schedulable(self, user_id: int | None = None) -> list[Invoice]:
        query = f"{_SELECT} WHERE i.reminders_enabled = 1"
        params: tuple = ()
        if user_id is not None:
            query += " AND i.user_id = ?"
            params = (user_id,)
        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
        return [self._row_to_invoice(row) for row in rows]

    async def count_non_draft_since(self, user_id: int, since: datetime) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM invoices
                WHERE user_id = ? AND status != ? AND created_at >= ?
                """,
                (user_id, InvoiceStatus.DRAFT.value, since.isoformat()),
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def count_by_status(self, user_id: int | None = None) -> dict[str, int]:
        query = "SELECT status, COUNT(*) FROM invoices"
        params: tuple = ()
        if user_id is not None:
            query += " WHERE user_id = ?"
            params = (user_id,)
        async with get_connection() as conn:
            cursor = await conn.execute(f"{query} GROUP BY status", params)
            rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    async def total_paid(self, user_id: int | None = None) -> float:
        query = "SELECT COALESCE(SUM(total), 0) FROM invoices WHERE status = ?"
        params: tuple = (InvoiceStatus.PAID.value,)
        if user_id is not None:
            query += " AND user_id = ?"
            params += (user_id,)
        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
        return float(row[0]) if row else 0.0

    @staticmethod
    def _rules_json(invoice: Invoice) -> str:
        return json.dumps([rule.model_dump() for rule in invoice.reminder_rules])

    @staticmethod
    def _row_to_invoice(row: aiosqlite.Row) -> Invoice:
        now = datetime.now()
        try:
            rules = [ReminderRule(**r) for r in json.loads(row["reminder_rules"] or "[]")]
        except (ValueError, TypeError):
            logger.warning("invoice_reminder_rules_unreadable", invoice_id=row["id"])
            rules = []

        keys = row.keys()
        return Invoice(
            id=row["id"],
            user_id=row["user_id"],
            client_id=row["client_id"],
            invoice_number=row["invoice_number"],
            status=InvoiceStatus(row["status"]),
            issue_date=parse_date(row["issue_date"]) or now.date(),
            due_date=parse_date(row["due_date"]),
            total=row["total"] or 0.0,
            currency=row["currency"],
            payment_terms=row["payment_terms"],
            notes=row["notes"] or "",
            template_id=row["template_id"],
            color_preset=row["color_preset"],
            reminders_enabled=bool(row["reminders_enabled"]),
            reminder_rules=rules,
            client_name=row["client_name"] if "client_name" in keys else None,
            client_email=row["client_email"] if "client_email" in keys else None,
            paid_at=parse_datetime(row["paid_at"]),
            created_at=parse_datetime(row["created_at"], now),
            updated_at=parse_datetime(row["updated_at"], now),
        )

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> InvoiceItem:
        return InvoiceItem(
            id=row["id"],
            invoice_id=row["invoice_id"],
            description=row["description"],
            quantity=row["quantity"],
            unit_price=row["unit_price"],
        )


# Rounding slack when comparing summed REAL amounts with an invoice total
_CENT = 0.005


class SQLiteInvoicePaymentStore(IInvoicePaymentStore):
    """SQLite implementation of invoice payment storage."""

    async def create_within(
        self, payment: InvoicePayment, invoice_total: float
    ) -> InvoicePayment | None:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO invoice_payments (
                    invoice_id, amount, payment_date, payment_method, notes, created_at
                )
                SELECT ?, ?, ?, ?, ?, ?
                WHERE (
                    SELECT COALESCE(SUM(amount), 0) FROM invoice_payments
                    WHERE invoice_id = ?
                ) + ? <= ?
                """,
                (
                    payment.invoice_id,
                    payment.amount,
                    iso(payment.payment_date),
                    payment.payment_method,
                    payment.notes,
                    iso(payment.created_at),
                    payment.invoice_id,
                    payment.amount,
                    invoice_total + _CENT,
                ),
            )
            if cursor.rowcount == 0:
                logger.info(
                    "invoice_payment_refused",
                    invoice_id=payment.invoice_id,
                    amount=payment.amount,
                )
                return None
            payment.id = cursor.lastrowid

        logger.info(
            "invoice_payment_recorded",
            payment_id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
        )
        return payment

    async def get(self, payment_id: int) -> InvoicePayment | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM invoice_payments WHERE id = ?", (payment_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_payment(row) if row else None

    async def delete(self, payment_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM invoice_payments WHERE id = ?", (payment_id,)
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("invoice_payment_deleted", payment_id=payment_id)
        return deleted

    async def list_for_invoice(self, invoice_id: int) -> list[InvoicePayment]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM invoice_payments WHERE invoice_id = ?
                ORDER BY payment_date DESC, id DESC
                """,
                (invoice_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_payment(row) for row in rows]

    async def total_for_invoice(self, invoice_id: int) -> float:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(SUM(amount), 0) FROM invoice_payments WHERE invoice_id = ?",
                (invoice_id,),
            )
            row = await cursor.fetchone()
        return round(float(row[0]), 2) if row else 0.0

    @staticmethod
    def _row_to_payment(row: aiosqlite.Row) -> InvoicePayment:
        now = datetime.now()
        return InvoicePayment(
            id=row["id"],
            invoice_id=row["invoice_id"],
            amount=row["amount"],
            payment_date=parse_date(row["payment_date"]) or now.date(),
            payment_method=row["payment_method"],
            notes=row["notes"] or "",
            created_at=parse_datetime(row["created_at"], now),
        )
