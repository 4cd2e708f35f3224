"""Frequency semantics for task masters.

Occurrence dates are always computed from the master's start date, so month
arithmetic clamps to the end of the month without drifting (Jan 31 -> Feb 29
-> Mar 31).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from dms.models.constants import DUE_OFFSET_DAYS
from dms.models.task_master import FrequencyUnit, TaskFrequency, TaskMaster


@dataclass(frozen=True)
class Period:
    """A recurrence step: either whole days or whole months."""

    days: int = 0
    months: int = 0


_NAMED_PERIODS: dict[TaskFrequency, Period] = {
    TaskFrequency.DAILY: Period(days=1),
    TaskFrequency.WEEKLY: Period(days=7),
    TaskFrequency.MONTHLY: Period(months=1),
    TaskFrequency.QUARTERLY: Period(months=3),
    TaskFrequency.YEARLY: Period(months=12),
}


def period_for(
    frequency: TaskFrequency | str,
    frequency_value: Optional[int] = None,
    frequency_unit: Optional[FrequencyUnit | str] = None,
) -> Period:
    """Return the step between two consecutive occurrences."""
    frequency = TaskFrequency(frequency)
    if frequency != TaskFrequency.CUSTOM:
        return _NAMED_PERIODS[frequency]

    if not frequency_value or frequency_value < 1 or frequency_unit is None:
        raise ValueError("custom frequency requires frequencyValue >= 1 and frequencyUnit")
    unit = FrequencyUnit(frequency_unit)
    if unit == FrequencyUnit.DAYS:
        return Period(days=frequency_value)
    if unit == FrequencyUnit.WEEKS:
        return Period(days=7 * frequency_value)
    return Period(months=frequency_value)


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the target month."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift(d: date, period: Period, times: int = 1) -> date:
    """Return d advanced by `times` periods."""
    if period.months:
        return add_months(d, period.months * times)
    return d + timedelta(days=period.days * times)


def first_index(frequency: TaskFrequency | str) -> int:
    """Index of the first occurrence relative to the start date.

    Named frequencies fire on the start date itself; custom frequencies fire one
    full interval after it.
    """
    return 1 if TaskFrequency(frequency) == TaskFrequency.CUSTOM else 0


def occurrence(start_date: date, period: Period, k: int) -> date:
    """Occurrence k, anchored at start_date."""
    return shift(start_date, period, k)


def _index_on_or_before(start_date: date, period: Period, target: date) -> int:
    """Largest k with occurrence(k) <= target (may be negative)."""
    if period.months:
        k = (target.year - start_date.year) * 12 + (target.month - start_date.month)
        k //= period.months
    else:
        k = (target - start_date).days // period.days
    # Month clamping can put the estimate one step off
    while occurrence(start_date, period, k) > target:
        k -= 1
    while occurrence(start_date, period, k + 1) <= target:
        k += 1
    return k


def next_occurrence(master: TaskMaster) -> date:
    """First occurrence strictly after the last generated one (or the first occurrence)."""
    period = period_for(master.frequency, master.frequency_value, master.frequency_unit)
    first = first_index(master.frequency)
    if master.last_occurrence_date is None:
        return occurrence(master.start_date, period, first)
    k = _index_on_or_before(master.start_date, period, master.last_occurrence_date) + 1
    return occurrence(master.start_date, period, max(k, first))


def due_occurrence(master: TaskMaster, today: date) -> Optional[date]:
    """Scheduled date to materialize for `today`, or None when nothing is due.

    When several periods were missed only the latest occurrence on or before today
    is returned; skipped periods are not back-filled.
    """
    upcoming = next_occurrence(master)
    if upcoming > today:
        return None
    period = period_for(master.frequency, master.frequency_value, master.frequency_unit)
    k = _index_on_or_before(master.start_date, period, today)
    latest = occurrence(master.start_date, period, k)
    return max(latest, upcoming)


def due_date_for(master: TaskMaster, scheduled_date: date) -> date:
    """Due date of an occurrence: a fixed offset per named frequency, one interval for custom."""
    frequency = TaskFrequency(master.frequency)
    if frequency == TaskFrequency.CUSTOM:
        period = period_for(frequency, master.frequency_value, master.frequency_unit)
        return shift(scheduled_date, period)
    return scheduled_date + timedelta(days=DUE_OFFSET_DAYS[frequency.value])
