"""Timestamp helpers shared by the ledger and voice sample stores."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current UTC time.

    Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and ``Z``."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(value.timestamp() * 1000)


def from_epoch_millis(millis: int) -> datetime:
    """UTC datetime for a millisecond epoch value."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
