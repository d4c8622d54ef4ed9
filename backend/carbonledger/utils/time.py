# Path: backend/carbonledger/utils/time.py

import calendar
from datetime import date, datetime, timezone
from typing import Optional, Tuple

# Earliest reporting year accepted for emission inventories
MIN_REPORTING_YEAR = 2020

QUARTER_MONTHS = {
    1: (1, 3),
    2: (4, 6),
    3: (7, 9),
    4: (10, 12),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def current_year() -> int:
    return utc_now().year


def max_reporting_year() -> int:
    """Inventories may be opened for next year, never later."""
    return current_year() + 1


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def quarter_for_month(month: int) -> int:
    return (month - 1) // 3 + 1


def period_bounds(year: int, quarter: Optional[int] = None, month: Optional[int] = None) -> Tuple[date, date]:
    """
    Calendar span covered by a reporting period.

    The most specific component wins: a month maps to that month, a quarter
    to its three months, and a bare year to the whole calendar year.
    """
    if month is not None:
        return month_bounds(year, month)
    if quarter is not None:
        first_month, last_month = QUARTER_MONTHS[quarter]
        return month_bounds(year, first_month)[0], month_bounds(year, last_month)[1]
    return date(year, 1, 1), date(year, 12, 31)


def as_date(value) -> date:
    """Normalise a datetime or date to a date (datetimes are converted to UTC first)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value
