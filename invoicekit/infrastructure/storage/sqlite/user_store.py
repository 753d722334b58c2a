"""
SQLite implementations of account storage.

``SQLiteUserStore`` covers users, business profiles, and the per-table
purge used by account deletion. ``SQLiteBillingStore`` covers billing
records.
"""

from datetime import datetime

import aiosqlite

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    BillingKind,
    BillingRecord,
    BillingStatus,
    BusinessProfile,
    SubscriptionPlan,
    User,
)
from invoicekit.core.exceptions import DatabaseError, TableNotFoundError
from invoicekit.core.interfaces.storage import IBillingStore, IUserStore
from invoicekit.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)
from invoicekit.infrastructure.storage.sqlite.rows import iso, parse_datetime

logger = get_logger(__name__)

_BY_INVOICE = "invoice_id IN (SELECT id FROM invoices WHERE user_id = ?)"

PURGE_STATEMENTS: dict[str, str] = {
    "invoice_items": f"DELETE FROM invoice_items WHERE {_BY_INVOICE}",
    "invoice_payments": f"DELETE FROM invoice_payments WHERE {_BY_INVOICE}",
    "reminders": f"DELETE FROM reminders WHERE {_BY_INVOICE}",
    "invoices": "DELETE FROM invoices WHERE user_id = ?",
    "estimates": "DELETE FROM estimates WHERE user_id = ?",
    "clients": "DELETE FROM clients WHERE user_id = ?",
    "billing_records": "DELETE FROM billing_records WHERE user_id = ?",
    "business_profiles": "DELETE FROM business_profiles WHERE user_id = ?",
    "users": "DELETE FROM users WHERE id = ?",
}


class SQLiteUserStore(IUserStore):
    """SQLite implementation of user and business profile storage."""

    async def get_user(self, user_id: int) -> User | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def create_user(self, user: User) -> User:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO users (email, name, plan, plan_activated_at, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user.email,
                    user.name,
                    user.plan.value,
                    iso(user.plan_activated_at),
                    iso(user.created_at),
                ),
            )
            user.id = cursor.lastrowid
        logger.info("user_created", user_id=user.id)
        return user

    async def update_user(self, user: User) -> User:
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE users SET email = ?, name = ?, plan = ?, plan_activated_at = ?
                WHERE id = ?
                """,
                (
                    user.email,
                    user.name,
                    user.plan.value,
                    iso(user.plan_activated_at),
                    user.id,
                ),
            )
        logger.info("user_updated", user_id=user.id, plan=user.plan.value)
        return user

    async def get_profile(self, user_id: int) -> BusinessProfile | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM business_profiles WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return BusinessProfile(
            user_id=row["user_id"],
            business_name=row["business_name"] or "",
            email=row["email"],
            phone=row["phone"],
            address=row["address"],
            website=row["website"],
            logo_url=row["logo_url"],
            updated_at=parse_datetime(row["updated_at"], datetime.now()),
        )

    async def upsert_profile(self, profile: BusinessProfile) -> BusinessProfile:
        profile.updated_at = datetime.now()
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO business_profiles (
                    user_id, business_name, email, phone, address, website,
                    logo_url, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    business_name = excluded.business_name,
                    email = excluded.email,
                    phone = excluded.phone,
                    address = excluded.address,
                    website = excluded.website,
                    logo_url = excluded.logo_url,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.user_id,
                    profile.business_name,
                    profile.email,
                    profile.phone,
                    profile.address,
                    profile.website,
                    profile.logo_url,
                    iso(profile.updated_at),
                ),
            )
        logger.info("business_profile_saved", user_id=profile.user_id)
        return profile

    async def purge_table(self, table: str, user_id: int) -> int:
        statement = PURGE_STATEMENTS.get(table)
        if statement is None:
            raise TableNotFoundError(table)

        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(statement, (user_id,))
                return cursor.rowcount
        except DatabaseError as e:
            if "no such table" in e.details["error"]:
                raise TableNotFoundError(table) from e
            raise DatabaseError(f"purge {table}", e.details["error"]) from e

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            plan=SubscriptionPlan(row["plan"]),
            plan_activated_at=parse_datetime(row["plan_activated_at"]),
            created_at=parse_datetime(row["created_at"], datetime.now()),
        )


class SQLiteBillingStore(IBillingStore):
    """SQLite implementation of billing record storage."""

    async def create_record(self, record: BillingRecord) -> BillingRecord:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO billing_records (
                    user_id, plan, amount, currency, status, kind, invoice_id,
                    session_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.plan.value,
                    record.amount,
                    record.currency,
                    record.status.value,
                    record.kind.value,
                    record.invoice_id,
                    record.session_id,
                    iso(record.created_at),
                ),
            )
            record.id = cursor.lastrowid
        logger.info(
            "billing_record_created",
            record_id=record.id,
            user_id=record.user_id,
            kind=record.kind.value,
            status=record.status.value,
        )
        return record

    async def list_records(self, user_id: int) -> list[BillingRecord]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM billing_records WHERE user_id = ? ORDER BY id DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def find_invoice_fee(self, invoice_id: int) -> BillingRecord | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM billing_records
                WHERE invoice_id = ? AND kind = ? AND status != ?
                ORDER BY id DESC LIMIT 1
                """,
                (invoice_id, BillingKind.INVOICE_FEE.value, BillingStatus.FAILED.value),
            )
            row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> BillingRecord:
        return BillingRecord(
            id=row["id"],
            user_id=row["user_id"],
            plan=SubscriptionPlan(row["plan"]),
            amount=row["amount"],
            currency=row["currency"],
            status=BillingStatus(row["status"]),
            kind=BillingKind(row["kind"]),
            invoice_id=row["invoice_id"],
            session_id=row["session_id"],
            created_at=parse_datetime(row["created_at"], datetime.now()),
        )
