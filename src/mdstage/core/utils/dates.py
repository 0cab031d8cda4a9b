"""Calendar date helpers for header fields"""

from datetime import date, datetime


DATE_FORMAT = "%Y-%m-%d"


def format_date(value: date) -> str:
    """Return value as yyyy-mm-dd."""
    return value.strftime(DATE_FORMAT)


def from_timestamp(ts: float) -> date:
    """Local calendar date of a POSIX timestamp."""
    return datetime.fromtimestamp(ts).date()


def month_dir(value: date) -> str:
    """Return the yyyy/mm subdirectory for a date (e.g. 2024/03)."""
    return f"{value.year:04d}/{value.month:02d}"
