"""UTC helpers. Every datetime that reaches the database is aware UTC."""
from datetime import datetime
from typing import Optional

import pytz


def utcnow() -> datetime:
    return datetime.now(pytz.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime.

    Naive values (SQLite hands these back) are taken to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)
