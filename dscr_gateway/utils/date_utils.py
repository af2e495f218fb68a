"""Calendar month helpers"""

from datetime import date


def month_key(day: date) -> str:
    """Return the "YYYY-MM" bucket key for a date"""
    return f"{day.year:04d}-{day.month:02d}"


def month_index(key: str) -> int:
    """Convert a "YYYY-MM" key into a running month count (year * 12 + month - 1)"""
    year, month = key.split("-")
    return int(year) * 12 + int(month) - 1


def months_between(earlier: str, later: str) -> int:
    """Calendar months from `earlier` to `later` (negative if `later` is older)"""
    return month_index(later) - month_index(earlier)
