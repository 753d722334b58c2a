"""Column parsing shared by the SQLite stores."""

from datetime import date, datetime
from typing import Any


def parse_datetime(value: Any, default: datetime | None = None) -> datetime | None:
    """ISO or SQLite ``datetime('now')`` text to datetime; default if unparsable."""
    if not value:
        return default
    try:
        return datetime.fromisoformat(str(value))
    except (ValueError, TypeError):
        return default


def parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
