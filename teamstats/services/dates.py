"""Tolerant date helpers shared by the statistics and timeline services.

Every timestamp handled by the engine is normalized to a timezone-aware UTC
datetime. Anything that cannot be parsed becomes ``None`` and is ignored by the
min/max folds instead of being treated as the earliest or latest date.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from logging import getLogger
from typing import Any

logger = getLogger(__name__)

SECONDS_IN_DAY = 86400
MINUTES_IN_DAY = 1440
MINUTES_IN_ALMOST_TWO_DAYS = 2520
MINUTES_IN_MONTH = 43200
MINUTES_IN_TWO_MONTHS = 86400


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def parse_date(value: Any) -> datetime | None:
    """Parse a date or timestamp without ever raising.

    Args:
        value: ISO 8601 string, datetime, date, or None

    Returns:
        Timezone-aware UTC datetime, or None if the value is missing or malformed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Ignoring unparsable date: '{value}'")
            return None
    else:
        logger.debug(f"Ignoring date of unsupported type {type(value).__name__}")
        return None

    # If the parsed datetime is naive, assume UTC
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def min_date(dates: Iterable[datetime | None]) -> datetime | None:
    """Earliest of the given dates, ignoring absent ones."""
    valid = [d for d in dates if d is not None]
    return min(valid) if valid else None


def max_date(dates: Iterable[datetime | None]) -> datetime | None:
    """Latest of the given dates, ignoring absent ones."""
    valid = [d for d in dates if d is not None]
    return max(valid) if valid else None


def difference_in_days(start: datetime | None, end: datetime | None) -> int:
    """Number of full days between two dates, truncated toward zero.

    Returns 0 when either endpoint is absent.
    """
    if start is None or end is None:
        return 0
    seconds = (end - start).total_seconds()
    return int(seconds / SECONDS_IN_DAY)


def day_key(value: datetime) -> str:
    """ISO calendar date (UTC) used to bucket activity by day."""
    return value.astimezone(timezone.utc).date().isoformat()


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def last_n_days(days: int, now: datetime | None = None) -> list[date]:
    """Calendar days (UTC) ending today, oldest first."""
    today = (now or utcnow()).astimezone(timezone.utc).date()
    return [today - timedelta(days=offset) for offset in reversed(range(days))]


def falls_on_day(value: datetime | None, day: date) -> bool:
    """Whether a timestamp falls inside the UTC calendar day ``[start, start + 1 day)``."""
    if value is None:
        return False
    start = start_of_day(day)
    return start <= value < start + timedelta(days=1)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural.format(count=count)


def _difference_in_months(earlier: datetime, later: datetime) -> int:
    months = (later.year - earlier.year) * 12 + (later.month - earlier.month)
    if (later.day, later.time()) < (earlier.day, earlier.time()):
        months -= 1
    return max(months, 0)


def format_distance(start: datetime | None, end: datetime | None) -> str:
    """Human-readable distance between two dates.

    Args:
        start: Beginning of the interval
        end: End of the interval

    Returns:
        Label such as "3 days", "about 1 month" or "over 2 years", or "N/A"
        when either endpoint is absent

    Distance Buckets:
        - under 1 minute: "less than a minute"
        - under 45 minutes: "N minutes"
        - under 90 minutes: "about 1 hour"
        - under 1 day: "about N hours"
        - under 42 hours: "1 day"
        - under 30 days: "N days"
        - under 60 days: "about N months"
        - under 1 year: "N months"
        - beyond: "about N years", "over N years" or "almost N years"
    """
    if start is None or end is None:
        return "N/A"

    earlier, later = sorted((start, end))
    minutes = _round_half_up((later - earlier).total_seconds() / 60)

    if minutes < 1:
        return "less than a minute"
    elif minutes < 45:
        return _plural(minutes, "1 minute", "{count} minutes")
    elif minutes < 90:
        return "about 1 hour"
    elif minutes < MINUTES_IN_DAY:
        hours = _round_half_up(minutes / 60)
        return _plural(hours, "about 1 hour", "about {count} hours")
    elif minutes < MINUTES_IN_ALMOST_TWO_DAYS:
        return "1 day"
    elif minutes < MINUTES_IN_MONTH:
        days = _round_half_up(minutes / MINUTES_IN_DAY)
        return _plural(days, "1 day", "{count} days")
    elif minutes < MINUTES_IN_TWO_MONTHS:
        months = _round_half_up(minutes / MINUTES_IN_MONTH)
        return _plural(months, "about 1 month", "about {count} months")

    months = _difference_in_months(earlier, later)
    if months < 12:
        nearest_month = _round_half_up(minutes / MINUTES_IN_MONTH)
        return _plural(nearest_month, "1 month", "{count} months")

    months_since_start_of_year = months % 12
    years = months // 12
    if months_since_start_of_year < 3:
        return _plural(years, "about 1 year", "about {count} years")
    elif months_since_start_of_year < 9:
        return _plural(years, "over 1 year", "over {count} years")
    return f"almost {years + 1} years"
