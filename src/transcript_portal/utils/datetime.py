"""Date-time helpers; the store keeps naive UTC timestamps."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as naive UTC, matching column defaults."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None = None) -> datetime:
    """Normalise an aware or naive timestamp (naive means UTC) for comparisons."""

    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
