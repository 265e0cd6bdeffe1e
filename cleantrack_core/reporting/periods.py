# =============================================================================
# cleantrack_core/reporting/periods.py
# Period Windows over Date-Stamped Tasks
# =============================================================================
"""
Calendar windows used by the reports:

- daily:   date == reference date
- weekly:  Sunday on/before the reference date through the following Saturday
- monthly: same calendar month and year
- yearly:  same calendar year
- all:     no filtering

Task dates are canonical ``YYYY-MM-DD`` strings, so daily and weekly checks
compare strings directly; no timestamps or time zones are involved.
"""

from __future__ import annotations
import calendar
from datetime import date, timedelta
from typing import Iterable, List, Tuple, Union

from cleantrack_core.models import FilterPeriod, Task, canonical_date

DateLike = Union[date, str]
PeriodLike = Union[FilterPeriod, str]


def parse_date(value: DateLike) -> date:
    """Turn a ``date`` or canonical date string into a ``date``."""
    return date.fromisoformat(canonical_date(value))


def as_period(period: PeriodLike) -> FilterPeriod:
    """Accept a FilterPeriod or its keyword; unknown keywords raise ValueError."""
    return period if isinstance(period, FilterPeriod) else FilterPeriod(period)


def _days_since_sunday(day: date) -> int:
    # date.weekday(): Monday=0 .. Sunday=6
    return (day.weekday() + 1) % 7


def week_range(ref: DateLike) -> Tuple[date, date]:
    """
    Sunday-to-Saturday week containing ``ref``.

    Both ends are derived from the reference date on their own; neither is
    computed from the other.
    """
    ref_day = parse_date(ref)
    offset = _days_since_sunday(ref_day)
    start = ref_day - timedelta(days=offset)
    end = ref_day + timedelta(days=6 - offset)
    return start, end


def filter_tasks(tasks: Iterable[Task], period: PeriodLike, ref: DateLike) -> List[Task]:
    """
    Tasks whose date falls inside the ``period`` window around ``ref``.

    Args:
        tasks: Full task collection
        period: daily / weekly / monthly / yearly / all
        ref: Reference date

    Returns:
        Matching tasks, in collection order
    """
    period = as_period(period)
    if period is FilterPeriod.ALL:
        return list(tasks)

    ref_text = canonical_date(ref)
    ref_day = parse_date(ref_text)

    if period is FilterPeriod.DAILY:
        return [task for task in tasks if task.date == ref_text]

    if period is FilterPeriod.WEEKLY:
        start, end = week_range(ref_day)
        start_text, end_text = start.isoformat(), end.isoformat()
        return [task for task in tasks if start_text <= task.date <= end_text]

    if period is FilterPeriod.MONTHLY:
        return [
            task for task in tasks
            if task.day.year == ref_day.year and task.day.month == ref_day.month
        ]

    return [task for task in tasks if task.day.year == ref_day.year]


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def format_date(value: DateLike) -> str:
    """``2024-03-10`` -> ``Mar 10, 2024``."""
    day = parse_date(value)
    return f"{day:%b} {day.day}, {day.year}"


def period_label(period: PeriodLike, ref: DateLike) -> str:
    """Sub-heading shown above a report for ``period`` at ``ref``."""
    period = as_period(period)
    ref_day = parse_date(ref)

    if period is FilterPeriod.DAILY:
        return format_date(ref_day)
    if period is FilterPeriod.WEEKLY:
        start, end = week_range(ref_day)
        return f"Week Range: {format_date(start)} - {format_date(end)}"
    if period is FilterPeriod.MONTHLY:
        return f"{ref_day:%B %Y}"
    if period is FilterPeriod.YEARLY:
        return f"Year {ref_day.year}"
    return "All historical data synced"


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def shift_reference(period: PeriodLike, ref: DateLike, steps: int = 1) -> date:
    """
    Move the reference date by ``steps`` whole periods (negative goes back).

    Month and year steps clamp to the last valid day, e.g. Jan 31 + 1 month
    is Feb 29 in a leap year.
    """
    period = as_period(period)
    ref_day = parse_date(ref)

    if period is FilterPeriod.DAILY:
        return ref_day + timedelta(days=steps)
    if period is FilterPeriod.WEEKLY:
        return ref_day + timedelta(weeks=steps)
    if period is FilterPeriod.MONTHLY:
        return _add_months(ref_day, steps)
    if period is FilterPeriod.YEARLY:
        return _add_months(ref_day, 12 * steps)
    return ref_day
