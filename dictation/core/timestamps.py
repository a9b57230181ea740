"""Timestamp formatting for the wire."""

from datetime import datetime, timezone


def isoformat_utc(value: datetime) -> str:
    """ISO-8601 with a Z suffix. Naive values are taken to be UTC."""
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
