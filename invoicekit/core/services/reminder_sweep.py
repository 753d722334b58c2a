"""
Reminder deduplication sweep.

Rows sharing an (invoice, tier, status) key are redundant; only the most
recently created one is kept. Running the sweep again on clean data
deletes nothing.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from invoicekit.config import get_logger
from invoicekit.core.entities import Reminder, ReminderStatus
from invoicekit.core.interfaces.storage import IReminderStore

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 100

DedupKey = tuple[int, str, str]


def dedup_key(reminder: Reminder) -> DedupKey:
    return (reminder.invoice_id, reminder.tier.value, reminder.status.value)


def find_redundant(reminders: Iterable[Reminder]) -> tuple[list[Reminder], int]:
    """
    Pick the rows to delete.

    Returns the redundant rows (every group member except the newest)
    and the number of groups that had more than one row.
    """
    groups: dict[DedupKey, list[Reminder]] = defaultdict(list)
    for reminder in reminders:
        groups[dedup_key(reminder)].append(reminder)

    redundant: list[Reminder] = []
    duplicate_groups = 0
    for rows in groups.values():
        if len(rows) < 2:
            continue
        duplicate_groups += 1
        # Ties fall back to the higher id so the choice is stable
        rows.sort(key=lambda r: (r.sort_time, r.id or 0), reverse=True)
        redundant.extend(rows[1:])

    return redundant, duplicate_groups


@dataclass
class SweepResult:
    """Outcome of a deduplication run."""

    scanned: int = 0
    duplicate_groups: int = 0
    duplicates_found: int = 0
    duplicates_removed: int = 0
    failed_batches: int = 0
    removed_by_status: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "duplicate_groups": self.duplicate_groups,
            "duplicates_found": self.duplicates_found,
            "duplicates_removed": self.duplicates_removed,
            "failed_batches": self.failed_batches,
            "removed_by_status": dict(self.removed_by_status),
        }


class ReminderDeduplicationSweep:
    """
    Deletes redundant reminder rows in fixed-size batches.

    A batch that fails is logged and skipped so the rest of the sweep
    still runs; its rows are picked up again on the next run.
    """

    def __init__(
        self,
        reminder_store: IReminderStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._store = reminder_store
        self._batch_size = batch_size

    def _batches(self, redundant: list[Reminder]) -> Iterator[tuple[str, list[int]]]:
        """Id batches that each hold a single status."""
        by_status: dict[str, list[int]] = defaultdict(list)
        for reminder in redundant:
            if reminder.id is not None:
                by_status[reminder.status.value].append(reminder.id)
        for status, ids in by_status.items():
            for start in range(0, len(ids), self._batch_size):
                yield status, ids[start : start + self._batch_size]

    async def run(self, statuses: list[ReminderStatus] | None = None) -> SweepResult:
        reminders = await self._store.list_all(statuses=statuses)
        redundant, duplicate_groups = find_redundant(reminders)

        result = SweepResult(
            scanned=len(reminders),
            duplicate_groups=duplicate_groups,
            duplicates_found=len(redundant),
        )
        logger.info(
            "sweep_started",
            scanned=result.scanned,
            duplicate_groups=duplicate_groups,
            duplicates_found=len(redundant),
        )

        removed_by_status: Counter[str] = Counter()
        for status, ids in self._batches(redundant):
            try:
                deleted = await self._store.delete_many(ids)
            except Exception as e:
                result.failed_batches += 1
                logger.error(
                    "sweep_batch_failed",
                    status=status,
                    batch_size=len(ids),
                    error=str(e),
                )
                continue

            # Rows removed since the scan are not counted
            result.duplicates_removed += deleted
            removed_by_status[status] += deleted

        result.removed_by_status = {s: n for s, n in removed_by_status.items() if n}
        logger.info(
            "sweep_complete",
            duplicates_removed=result.duplicates_removed,
            failed_batches=result.failed_batches,
        )
        return result
