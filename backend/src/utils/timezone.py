"""
Wait Time Tracker - Timezone Utilities
Provides park-local time handling.

Snapshots are stored with naive UTC timestamps, while every calendar
attribute (day of week, hour, holiday) is expressed in the park's own
timezone so that "2 PM on a Tuesday" means 2 PM at the park.
"""

from datetime import datetime, date, timedelta, timezone
from zoneinfo import ZoneInfo

from utils.config import PARK_TIMEZONE

PARK_TZ = ZoneInfo(PARK_TIMEZONE)
UTC_TZ = ZoneInfo('UTC')


def utc_now() -> datetime:
    """
    Get current UTC time as a naive datetime.

    Naive UTC is the storage convention for every timestamp column.

    Returns:
        datetime: Current UTC time without tzinfo
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_now_local() -> datetime:
    """Get current datetime in the park timezone."""
    return datetime.now(PARK_TZ)


def to_local(moment: datetime) -> datetime:
    """
    Convert a datetime to the park timezone.

    Naive datetimes are treated as UTC, matching how they are stored.

    Args:
        moment: Aware datetime, or naive datetime in UTC

    Returns:
        datetime: Aware datetime in the park timezone
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC_TZ)
    return moment.astimezone(PARK_TZ)


def to_naive_utc(moment: datetime) -> datetime:
    """Normalize any datetime to naive UTC for storage and comparison."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC_TZ).replace(tzinfo=None)


def get_today_key() -> str:
    """
    Get today's date key (YYYY-MM-DD) in the park timezone.

    Used as the default date for the sports caches.
    """
    return get_now_local().date().isoformat()


def parse_date_key(value: str) -> date:
    """
    Parse and validate a YYYY-MM-DD date key.

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    return datetime.strptime(value, '%Y-%m-%d').date()


def hours_ago_utc(hours: float) -> datetime:
    """Naive UTC cutoff for 'last N hours' queries."""
    return utc_now() - timedelta(hours=hours)
