"""
Release date parsing and calendar-month arithmetic.

Providers report dates as "2023-03-31", "2023/03/31" or full ISO timestamps.
Everything is normalized to "YYYY-MM-DD" before it reaches the cache.
"""

from datetime import date, datetime, timedelta

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def parse_release_date(value: str | None) -> date | None:
    """
    Parse a provider release date.

    Returns:
        The date, or None if the value is empty or not a recognised format.
    """
    if not value:
        return None

    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def normalize_release_date(value: str | None, default: str) -> str:
    """
    Convert a provider date to ISO form.

    Empty values become ``default``. Unparseable values are kept as-is so the
    age filter can still let them through.
    """
    if not value or not value.strip():
        return default

    parsed = parse_release_date(value)
    return parsed.isoformat() if parsed else value.strip()


def _shift_months(day: date, months: int) -> date:
    """
    Move ``day`` by a number of calendar months, keeping the day of month.

    A day that does not exist in the target month rolls forward into the
    following month (31 March minus one month is 3 March).
    """
    index = day.year * 12 + (day.month - 1) + months
    year, month_index = divmod(index, 12)
    first = date(year, month_index + 1, 1)
    return first + timedelta(days=day.day - 1)


def subtract_months(day: date, months: int) -> date:
    return _shift_months(day, -months)


def add_months(day: date, months: int) -> date:
    return _shift_months(day, months)


def cutoff_date(max_age_months: int | None, today: date | None = None) -> date | None:
    """
    Earliest release date a set may have to pass an age filter.

    Args:
        max_age_months: Maximum set age. None, 0 or negative disables filtering.
        today: Reference date, defaults to today

    Returns:
        Cutoff date, or None when filtering is disabled.
    """
    if max_age_months is None or max_age_months <= 0:
        return None
    return subtract_months(today or date.today(), max_age_months)
