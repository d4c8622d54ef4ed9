from datetime import date, datetime, timedelta, timezone

import pytest

from carbonledger.utils.time import as_date, period_bounds, quarter_for_month


def test_bare_year_covers_calendar_year():
    assert period_bounds(2024) == (date(2024, 1, 1), date(2024, 12, 31))


@pytest.mark.parametrize("quarter,start,end", [
    (1, date(2023, 1, 1), date(2023, 3, 31)),
    (2, date(2023, 4, 1), date(2023, 6, 30)),
    (3, date(2023, 7, 1), date(2023, 9, 30)),
    (4, date(2023, 10, 1), date(2023, 12, 31)),
])
def test_quarter_bounds(quarter, start, end):
    assert period_bounds(2023, quarter=quarter) == (start, end)


def test_month_takes_precedence_over_quarter():
    assert period_bounds(2023, quarter=1, month=2) == (date(2023, 2, 1), date(2023, 2, 28))


def test_leap_february():
    assert period_bounds(2024, month=2)[1] == date(2024, 2, 29)


def test_quarter_for_month():
    assert [quarter_for_month(m) for m in (1, 3, 4, 9, 10, 12)] == [1, 1, 2, 3, 4, 4]


def test_as_date_converts_to_utc_first():
    late_evening = datetime(2024, 12, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert as_date(late_evening) == date(2025, 1, 1)
    assert as_date(date(2024, 5, 1)) == date(2024, 5, 1)
