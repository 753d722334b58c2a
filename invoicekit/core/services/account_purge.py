"""Cascading deletion of everything a user owns."""

from __future__ import annotations

from dataclasses import dataclass, field

from invoicekit.config import get_logger
from invoicekit.core.exceptions import TableNotFoundError
from invoicekit.core.interfaces.storage import IUserStore

logger = get_logger(__name__)

# Children before parents
PURGE_ORDER: tuple[str, ...] = (
    "invoice_items",
    "invoice_payments",
    "reminders",
    "invoices",
    "estimates",
    "clients",
    "billing_records",
    "business_profiles",
    "users",
)


@dataclass
class PurgeResult:
    user_id: int
    deleted: dict[str, int] = field(default_factory=dict)
    missing_tables: list[str] = field(default_factory=list)

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())


class AccountPurgeService:
    """
    Deletes a user's rows table by table.

    A missing table is logged and skipped. Any other store error stops
    the purge and propagates.
    """

    def __init__(self, user_store: IUserStore) -> None:
        self._store = user_store

    async def purge(self, user_id: int) -> PurgeResult:
        result = PurgeResult(user_id=user_id)
        for table in PURGE_ORDER:
            try:
                result.deleted[table] = await self._store.purge_table(table, user_id)
            except TableNotFoundError:
                logger.warning("purge_table_missing", table=table, user_id=user_id)
                result.missing_tables.append(table)

        logger.info(
            "account_purged",
            user_id=user_id,
            total_deleted=result.total_deleted,
            missing_tables=result.missing_tables,
        )
        return result
