"""Shared column helpers for timezone-aware timestamps"""

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_type() -> sa.DateTime:
    return sa.DateTime(timezone=True)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """
    Format as ISO-8601 UTC with milliseconds and a ``Z`` suffix.

    SQLite hands timestamps back without tzinfo; those are read as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
