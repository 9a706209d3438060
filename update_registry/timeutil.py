"""UTC timestamp helpers shared by the repositories and the wire format."""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage.

    Fixed-width microsecond ISO strings keep lexical and chronological
    order identical, which the date-range queries rely on.
    """
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def from_db(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back to an aware UTC datetime."""
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def to_rfc3339(value: datetime) -> str:
    """Format as RFC 3339 with millisecond precision and a ``Z`` suffix.

    Matches what the Tauri updater expects in ``pub_date``
    (e.g. ``2024-01-15T10:30:00.000Z``).
    """
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
