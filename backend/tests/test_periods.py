from datetime import date

import pytest

from mygoalfinance.services import periods
from mygoalfinance.services.errors import InvalidPeriodFormat
from mygoalfinance.services.periods import (
    Period,
    month_bounds,
    month_label,
    parse_day,
    parse_month,
    resolve_period,
    shift_months,
)


def test_parse_month_valid() -> None:
    assert parse_month("2026-02") == (2026, 2)
    assert parse_month("1999-12") == (1999, 12)


@pytest.mark.parametrize("token", ["2026/02", "2026-13", "2026-00", "26-02", "2026-2", "2026-02-01", "0000-01", "2026-02\n"])
def test_parse_month_invalid(token: str) -> None:
    with pytest.raises(InvalidPeriodFormat):
        parse_month(token)


def test_invalid_period_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_month("nope")


def test_parse_day_rejects_impossible_dates() -> None:
    assert parse_day("2024-02-29") == date(2024, 2, 29)
    with pytest.raises(InvalidPeriodFormat):
        parse_day("2023-02-29")
    with pytest.raises(InvalidPeriodFormat):
        parse_day("2023-2-01")


@pytest.mark.parametrize(
    ("year", "month", "last_day"),
    [
        (2024, 2, 29),
        (2023, 2, 28),
        (2000, 2, 29),
        (1900, 2, 28),
        (2026, 4, 30),
        (2026, 1, 31),
        (2026, 12, 31),
    ],
)
def test_month_bounds_last_day(year: int, month: int, last_day: int) -> None:
    start, end = month_bounds(year, month)
    assert start == date(year, month, 1)
    assert end == date(year, month, last_day)


def test_resolve_period_last_supported_month() -> None:
    period = resolve_period("9999-12")
    assert period.date_from == date(9999, 12, 1)
    assert period.date_to == date(9999, 12, 31)


def test_shift_months_year_boundary() -> None:
    assert shift_months(date(2026, 1, 1), -1) == date(2025, 12, 1)
    assert shift_months(date(2026, 12, 1), 1) == date(2027, 1, 1)
    assert month_label(date(2026, 3, 1)) == "2026-03"


def test_resolve_period_from_month_token() -> None:
    assert resolve_period("2024-02") == Period(date(2024, 2, 1), date(2024, 2, 29), month="2024-02")
    assert resolve_period("2023-02") == Period(date(2023, 2, 1), date(2023, 2, 28), month="2023-02")


def test_resolve_period_defaults_to_current_month() -> None:
    period = resolve_period(today=date(2026, 3, 15))
    assert period == Period(date(2026, 3, 1), date(2026, 3, 31), month="2026-03")


def test_resolve_period_default_uses_utc_today(monkeypatch) -> None:
    monkeypatch.setattr(periods, "utc_today", lambda: date(2024, 2, 10))
    period = resolve_period()
    assert (period.date_from, period.date_to) == (date(2024, 2, 1), date(2024, 2, 29))


def test_resolve_period_explicit_range_is_verbatim() -> None:
    period = resolve_period(date_from="2026-01-10", date_to="2026-02-05")
    assert period == Period(date(2026, 1, 10), date(2026, 2, 5), month=None)


def test_resolve_period_inverted_range_passes_through() -> None:
    period = resolve_period(date_from="2026-02-05", date_to="2026-01-10")
    assert period.date_from > period.date_to


def test_resolve_period_month_wins_over_explicit_range() -> None:
    period = resolve_period("2026-02", "2025-01-01", "2025-01-31")
    assert period.month == "2026-02"
    assert period.date_from == date(2026, 2, 1)


def test_resolve_period_requires_both_bounds() -> None:
    with pytest.raises(InvalidPeriodFormat):
        resolve_period(date_from="2026-01-01")
    with pytest.raises(InvalidPeriodFormat):
        resolve_period(date_to="2026-01-01")


def test_iso_labels_sort_chronologically() -> None:
    labels = [resolve_period(token).date_to.isoformat() for token in ["2025-12", "2024-02", "2026-01"]]
    assert sorted(labels) == ["2024-02-29", "2025-12-31", "2026-01-31"]
