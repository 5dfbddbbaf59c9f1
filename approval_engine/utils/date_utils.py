"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

# Trailing windows for date-range shorthands; "today" is handled separately
SHORTHAND_WINDOWS = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_date_range(shorthand: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Resolve a date-range shorthand to concrete (start, end) bounds.

    Both bounds are inclusive and the end is always ``now``:
    - today: from midnight UTC of the current day
    - week:  trailing 7 days
    - month: trailing 30 days
    - year:  trailing 365 days

    Raises:
        ValueError: On an unknown shorthand
    """
    now = ensure_aware(now or utc_now())
    if shorthand == "today":
        return start_of_day(now), now
    try:
        window = SHORTHAND_WINDOWS[shorthand]
    except KeyError:
        raise ValueError(f"Unknown date range: {shorthand!r}") from None
    return now - window, now


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from the API; empty values map to None"""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_timestamp(value: datetime) -> str:
    return ensure_aware(value).astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
