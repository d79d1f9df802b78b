from __future__ import annotations

import calendar
from datetime import date, datetime, time

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def parse_clock_time(value: str | time) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) wall-clock string."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    try:
        month = int(month)
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError("Month and year must be integers")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise ValidationError("Year is out of range")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def now_local() -> datetime:
    """Current local time.

    Services take this as their clock; tests pass a fixed clock instead.
    """
    return datetime.now()
