"""
Timezone utilities for feedcal.

Provides the timezone conversions used by the parser and the agenda.
Timed events are stored as UTC instant strings and converted to local
time for display; all-day events are stored as plain dates.
"""

from datetime import datetime, date, tzinfo
from typing import Optional, Union
import time as _time
import pytz

from .config import DEFAULT_TIMEZONE


# Default timezone - can be overridden by config
_local_timezone_name: str = DEFAULT_TIMEZONE

INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback: try system timezone name
        try:
            return pytz.timezone(_time.tzname[0])
        except pytz.UnknownTimeZoneError:
            # Last resort: calculate offset and use fixed offset timezone
            is_dst = _time.localtime().tm_isdst
            if is_dst:
                offset_seconds = -_time.altzone
            else:
                offset_seconds = -_time.timezone
            return pytz.FixedOffset(offset_seconds // 60)


def localize(dt: datetime, tz: tzinfo) -> datetime:
    """
    Attach tz to a naive wall-clock datetime.

    pytz zones need localize() to pick the right DST offset; other
    tzinfo implementations resolve the offset from the attached zone.
    """
    if hasattr(tz, 'localize'):
        return tz.localize(dt)
    return dt.replace(tzinfo=tz)


def to_local_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert a UTC datetime to local timezone.

    Args:
        dt: A datetime object, typically in UTC with tzinfo set.
        tz: Target timezone (defaults to the configured local timezone)

    Returns:
        A timezone-aware datetime in the local timezone.
        If input has no tzinfo, returns it unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(tz or get_local_timezone())
    return dt


def to_utc_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert a datetime to UTC.

    Args:
        dt: A datetime object. Naive values are interpreted in tz, or UTC
            when tz is None (ICS "floating" times).

    Returns:
        A timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        dt = localize(dt, tz or pytz.UTC)
    return dt.astimezone(pytz.UTC)


def is_date_only(value: Union[date, datetime]) -> bool:
    """True for a calendar date with no time-of-day component."""
    return isinstance(value, date) and not isinstance(value, datetime)


def format_ical_time(value: Union[date, datetime]) -> str:
    """
    Serialize a parsed ICS time for storage.

    Dates become 'YYYY-MM-DD'. Datetimes become a UTC instant string
    ('YYYY-MM-DDTHH:MM:SSZ') computed from the absolute moment, so the
    source timezone's DST rules are honoured.
    """
    if is_date_only(value):
        return value.isoformat()
    return to_utc_datetime(value).strftime(INSTANT_FORMAT)


def parse_stored_time(value: str) -> Union[date, datetime]:
    """
    Inverse of format_ical_time.

    Returns a date for date-only strings, otherwise an aware UTC datetime.
    """
    if 'T' not in value:
        return date.fromisoformat(value)
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return to_utc_datetime(parsed)
