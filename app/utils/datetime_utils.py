"""UTC date/time helpers. All timestamps are stored and compared in UTC."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current datetime in UTC (tz-aware)."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.

    SQLite returns naive datetimes for DateTime(timezone=True) columns; naive values
    are treated as UTC since that is how they were written.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """True if expires_at is strictly in the past."""
    return as_utc(expires_at) < (now or utc_now())

