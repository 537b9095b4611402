from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how subscription dates are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
