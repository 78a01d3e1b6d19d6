"""
Timezone helpers.

Instants are stored as naive UTC datetimes truncated to whole milliseconds,
so that millisecond counters derived from them are exact.
"""

from datetime import date, datetime
from typing import Optional

import pytz

from app.exceptions.errors import InvalidTimeZone
from app.core.logger import get_logger

logger = get_logger("timezones")


def resolve_timezone(name: Optional[str]):
    """Resolve an IANA zone name or raise InvalidTimeZone."""
    if not name:
        raise InvalidTimeZone("timeZone is required")
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise InvalidTimeZone(f"Invalid timeZone: {name}")


def resolve_timezone_or_utc(name: Optional[str]):
    """Read-path variant: unknown zones fall back to UTC."""
    if not name:
        return pytz.UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Invalid timeZone '{name}', falling back to UTC")
        return pytz.UTC


def as_naive_utc(value: datetime) -> datetime:
    """Naive input is taken as UTC."""
    if value.tzinfo is not None:
        return value.astimezone(pytz.UTC).replace(tzinfo=None)
    return value


def normalize_instant(value: datetime) -> datetime:
    """Convert to naive UTC and drop sub-millisecond precision."""
    value = as_naive_utc(value)
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def to_local(instant: datetime, tz) -> datetime:
    return pytz.UTC.localize(instant).astimezone(tz)


def local_date_of(instant: datetime, tz) -> date:
    return to_local(instant, tz).date()


def utc_now() -> datetime:
    return normalize_instant(datetime.now(pytz.UTC))
