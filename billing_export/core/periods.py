"""Resolve named reporting periods into inclusive datetime ranges."""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from billing_export.core.errors import ExportConfigError

PERIOD_CHOICES = [
    "current_month",
    "previous_month",
    "current_quarter",
    "previous_quarter",
    "current_year",
    "previous_year",
    "custom",
]

DEFAULT_PERIOD = "current_month"
CUSTOM_LOOKBACK_DAYS = 30

DateRange = Tuple[datetime, datetime]


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time(0, 0, 0))


def _day_end(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59))


def _month_range(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return _day_start(date(year, month, 1)), _day_end(date(year, month, last_day))


def quarter_start(day: date) -> date:
    """First day of the quarter containing ``day``."""

    start_month = (day.month - 1) // 3 * 3 + 1
    return date(day.year, start_month, 1)


def _parse_date(raw: str, field_name: str) -> date:
    text = raw.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ExportConfigError(f"Invalid {field_name} date: {raw!r}") from exc


def custom_range(
    date_from: Optional[str], date_to: Optional[str], now: Optional[datetime] = None
) -> DateRange:
    """Build a range from user supplied dates, defaulting to the last 30 days."""

    now = now or datetime.now()
    start = _parse_date(date_from, "from") if date_from else (now - timedelta(days=CUSTOM_LOOKBACK_DAYS)).date()
    end = _parse_date(date_to, "to") if date_to else now.date()
    return _day_start(start), _day_end(end)


def resolve_period(
    period: Optional[str],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """Return the inclusive ``(start, end)`` range for a period keyword.

    Unknown or missing keywords fall back to the current month. All values are
    naive datetimes in the host's local time.
    """

    now = now or datetime.now()
    today = now.date()

    if period == "custom":
        return custom_range(date_from, date_to, now=now)

    if period == "previous_month":
        last_of_previous = today.replace(day=1) - timedelta(days=1)
        return _month_range(last_of_previous.year, last_of_previous.month)

    if period == "current_quarter":
        start = quarter_start(today)
        end_month = start.month + 2
        return _day_start(start), _month_range(start.year, end_month)[1]

    if period == "previous_quarter":
        end = quarter_start(today) - timedelta(days=1)
        return _day_start(quarter_start(end)), _day_end(end)

    if period == "current_year":
        return _day_start(date(today.year, 1, 1)), _day_end(date(today.year, 12, 31))

    if period == "previous_year":
        year = today.year - 1
        return _day_start(date(year, 1, 1)), _day_end(date(year, 12, 31))

    return _month_range(today.year, today.month)
