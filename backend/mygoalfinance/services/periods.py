"""Month token and date-range resolution for period summaries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from .errors import InvalidPeriodFormat

MONTH_PATTERN = re.compile(r"\d{4}-\d{2}", re.ASCII)
DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


@dataclass(frozen=True)
class Period:
    """Closed date interval [date_from, date_to]; `month` is set when derived from a token."""

    date_from: date
    date_to: date
    month: str | None = None


def utc_today() -> date:
    """Current calendar date in UTC; wrapped for deterministic tests."""
    return datetime.now(timezone.utc).date()


def parse_month(month: str) -> tuple[int, int]:
    """Parse a YYYY-MM token into (year, month)."""
    if not MONTH_PATTERN.fullmatch(month):
        raise InvalidPeriodFormat("Expected YYYY-MM")

    year_text, month_text = month.split("-")
    year = int(year_text)
    month_number = int(month_text)
    if year < 1 or month_number < 1 or month_number > 12:
        raise InvalidPeriodFormat("Expected YYYY-MM")

    return year, month_number


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD token, rejecting impossible calendar days."""
    if not DAY_PATTERN.fullmatch(value):
        raise InvalidPeriodFormat("Expected YYYY-MM-DD")

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidPeriodFormat("Expected YYYY-MM-DD") from exc


def month_label(month_start: date) -> str:
    """Render a month start date as YYYY-MM."""
    return f"{month_start.year:04d}-{month_start.month:02d}"


def shift_months(month_start: date, offset: int) -> date:
    absolute_index = (month_start.year * 12 + (month_start.month - 1)) + offset
    next_year, month_zero_based = divmod(absolute_index, 12)
    return date(next_year, month_zero_based + 1, 1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month, both inclusive."""
    month_start = date(year, month, 1)
    if month == 12:
        return month_start, date(year, 12, 31)

    # Day zero of the following month.
    month_end = shift_months(month_start, 1) - timedelta(days=1)
    return month_start, month_end


def current_month(*, today: date | None = None) -> str:
    return month_label(today or utc_today())


def resolve_period(
    month: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    *,
    today: date | None = None,
) -> Period:
    """
    Resolve a month token or an explicit range into a concrete Period.

    Precedence:
    - `month` wins when supplied, even alongside explicit bounds
    - explicit `date_from`/`date_to` are used verbatim and must come together
    - neither defaults to the current (UTC) calendar month

    Inverted explicit ranges are passed through unchanged.
    """
    if month is None and date_from is None and date_to is None:
        month = current_month(today=today)

    if month is not None:
        year, month_number = parse_month(month)
        try:
            month_start, month_end = month_bounds(year, month_number)
        except ValueError as exc:
            raise InvalidPeriodFormat("Month out of range") from exc
        return Period(date_from=month_start, date_to=month_end, month=month)

    if date_from is None or date_to is None:
        raise InvalidPeriodFormat("from and to must be supplied together")

    return Period(date_from=parse_day(date_from), date_to=parse_day(date_to))
