"""
Timestamp helpers

All engine timestamps are timezone-aware UTC datetimes. Columns store them as
fixed-width ISO-8601 strings (millisecond precision) so lexical order equals
chronological order; segment JSON stores epoch milliseconds.
"""

from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current time, truncated to millisecond precision"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="milliseconds")


def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value))


def to_epoch_ms(value: datetime) -> int:
    return round(ensure_utc(value).timestamp() * 1000)


def from_epoch_ms(value: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
