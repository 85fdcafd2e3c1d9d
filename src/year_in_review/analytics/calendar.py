"""Calendar helpers shared by the analyzers.

Hour, weekday and calendar-date extraction happen in the local timezone of the
running process unless an explicit ``tzinfo`` is passed. The report describes
when the user worked, so wall-clock time matters more than UTC.
"""

import logging
import math
from datetime import UTC, date, datetime, timedelta, tzinfo

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Indexed by day_of_week(), 0 = Sunday
DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an API timestamp into an aware datetime.

    Accepts ISO 8601 strings as returned by GitLab and GitHub
    (``2025-01-15T10:30:00.000Z``, ``2025-01-15T10:30:00+02:00``) as well as
    datetimes. Naive values are assumed to be UTC.

    Args:
        value: Timestamp string, datetime, or None.

    Returns:
        Aware datetime, or None if the input is missing or malformed.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except (ValueError, AttributeError) as e:
            logger.warning("Failed to parse timestamp '%s': %s", value, e)
            return None

    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert a datetime to the given timezone, or the process-local one."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz)


def hour_of_day(dt: datetime, tz: tzinfo | None = None) -> int:
    """Hour of day (0-23) in local time."""
    return to_local(dt, tz).hour


def day_of_week(dt: datetime, tz: tzinfo | None = None) -> int:
    """Day of week in local time, 0 = Sunday through 6 = Saturday."""
    return to_local(dt, tz).isoweekday() % 7


def local_date(dt: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of ``dt`` in local time."""
    return to_local(dt, tz).date()


def local_date_key(dt: datetime, tz: tzinfo | None = None) -> str:
    """Calendar date of ``dt`` in local time as ``YYYY-MM-DD``."""
    return local_date(dt, tz).isoformat()


def month_name(d: date) -> str:
    """English month name of a date, independent of the process locale."""
    return MONTH_NAMES[d.month - 1]


def iso_week_number(d: date) -> int:
    """ISO 8601 week number (1-53) of a calendar date.

    The week is identified by its Thursday: shift the date to the Thursday of
    its Monday-based week and count weeks from January 1st of that Thursday's
    year. Dates in late December can therefore belong to week 1 and dates in
    early January to week 52 or 53.

    Args:
        d: A date, or a datetime whose calendar date is used as-is.

    Returns:
        Week number between 1 and 53.
    """
    day = d.date() if isinstance(d, datetime) else d
    thursday = day + timedelta(days=4 - day.isoweekday())
    year_start = date(thursday.year, 1, 1)
    return math.ceil(((thursday - year_start).days + 1) / 7)
