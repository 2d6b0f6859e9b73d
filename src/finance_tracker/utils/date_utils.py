"""Date parsing and calendar range utilities."""

import calendar
from datetime import date, datetime, timedelta

from finance_tracker.errors import InvalidInputError


def parse_date(raw_date: object) -> date:
    """Parse a stored date value into a date object.

    Accepts date and datetime objects, ISO dates ("2024-01-15") and ISO
    timestamps ("2024-01-15T10:30:00Z", "2024-01-15T10:30:00+01:00").
    Timestamps keep their calendar date as written; no timezone conversion
    is applied.

    Args:
        raw_date: The raw date value to parse.

    Returns:
        Parsed date object.

    Raises:
        InvalidInputError: If the value cannot be parsed.
    """
    if isinstance(raw_date, datetime):
        return raw_date.date()
    if isinstance(raw_date, date):
        return raw_date
    if not isinstance(raw_date, str) or not raw_date.strip():
        raise InvalidInputError(f"Cannot parse date: {raw_date!r}")

    date_str = raw_date.strip()
    try:
        if "T" in date_str or " " in date_str:
            # fromisoformat() only accepts a trailing "Z" from Python 3.11
            return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
        return date.fromisoformat(date_str)
    except ValueError as e:
        raise InvalidInputError(f"Cannot parse date: {raw_date!r}") from e


def date_to_iso(d: date) -> str:
    """Convert a date to ISO 8601 format (YYYY-MM-DD).

    Args:
        d: Date to convert.

    Returns:
        ISO format date string.
    """
    return d.isoformat()


def format_day_label(d: date) -> str:
    """Format a date as a short chart label, e.g. "Jan 5"."""
    return f"{d.strftime('%b')} {d.day}"


def format_month_label(d: date) -> str:
    """Format a date's month as a label, e.g. "Jan 2024"."""
    return d.strftime("%b %Y")


def month_key(d: date) -> str:
    """Return the YYYY-MM key of a date's month."""
    return f"{d.year:04d}-{d.month:02d}"


def validate_date_range(start: date, end: date) -> None:
    """Validate that a date range is well-formed.

    Args:
        start: Start of range (inclusive).
        end: End of range (inclusive).

    Raises:
        InvalidInputError: If start is after end.
    """
    if start > end:
        raise InvalidInputError(
            f"Invalid date range: start {start.isoformat()} is after end {end.isoformat()}"
        )


def each_day(start: date, end: date) -> list[date]:
    """List every calendar day in [start, end], ascending.

    Args:
        start: First day (inclusive).
        end: Last day (inclusive).

    Returns:
        List of (end - start).days + 1 dates.

    Raises:
        InvalidInputError: If start is after end.
    """
    validate_date_range(start, end)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def is_date_in_range(
    d: date,
    start_date: date | None = None,
    end_date: date | None = None,
) -> bool:
    """Check if a date is within a range.

    Args:
        d: Date to check.
        start_date: Start of range (inclusive). None means no lower bound.
        end_date: End of range (inclusive). None means no upper bound.

    Returns:
        True if date is within range.
    """
    if start_date is not None and d < start_date:
        return False
    if end_date is not None and d > end_date:
        return False
    return True


def start_of_month(d: date) -> date:
    """Return the first day of the date's month."""
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    """Return the last day of the date's month."""
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift a date by a number of months, clamping the day to the target month.

    Args:
        d: Date to shift.
        months: Months to add (negative to subtract).

    Returns:
        Shifted date.
    """
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
