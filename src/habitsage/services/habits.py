"""Derived habit metrics: progress, streaks, consistency and chart aggregates.

Every function here is pure. The reference day is always passed in so results
do not depend on the wall clock.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from ..days import day_key, days_between, local_day, parse_day_key, to_local, week_days
from ..models.habit import CompletionEntry, Frequency, HabitId, HabitRecord

Completions = Mapping[str, CompletionEntry]


@dataclass(slots=True)
class ProgressReport:
    """Percent plus the short label shown on a progress bar."""

    percent: float
    label: str


@dataclass(slots=True)
class HabitAggregate:
    """Same-named habits merged for chart display."""

    name: str
    creation_date: datetime
    ids: list[HabitId] = field(default_factory=list)
    completions: dict[str, CompletionEntry] = field(default_factory=dict)


@dataclass(slots=True)
class HabitChartMetrics:
    name: str
    max_daily_count: int
    longest_streak: int
    consistency_rate: float


@dataclass(slots=True)
class CalendarDay:
    day_key: str
    day: int
    completed: bool


@dataclass(slots=True)
class CalendarMonth:
    """Month grid; ``leading_blanks`` pads a Sunday-first week row."""

    year: int
    month: int
    leading_blanks: int
    days: list[CalendarDay]


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return f"{value:g}"


def _completed_days(completions: Completions) -> list[date]:
    return sorted(parse_day_key(key) for key, entry in completions.items() if entry.count > 0)


def today_progress(record: HabitRecord, today: date) -> CompletionEntry:
    """Today's entry for ``record``; a zero entry when nothing was logged."""

    entry = record.completions.get(day_key(today))
    return entry.copy() if entry else CompletionEntry()


def daily_progress_percent(record: HabitRecord, today: date) -> ProgressReport:
    count = today_progress(record, today).count
    percent = min(count / record.target_value * 100, 100.0)
    return ProgressReport(percent, f"{count}/{_format_number(record.target_value)} completions")


def weekly_progress_percent(record: HabitRecord, today: date) -> ProgressReport:
    """Days with at least one log in the Monday..Sunday week containing ``today``."""

    done = 0
    for day in week_days(today):
        entry = record.completions.get(day_key(day))
        if entry and entry.count > 0:
            done += 1
    return ProgressReport(done / 7 * 100, f"{done}/7 days")


def habit_progress(record: HabitRecord, today: date) -> ProgressReport:
    if record.frequency is Frequency.WEEKLY:
        return weekly_progress_percent(record, today)
    return daily_progress_percent(record, today)


def max_daily_count(completions: Completions) -> int:
    """Best single day by number of log events (not a streak)."""

    return max((entry.count for entry in completions.values()), default=0)


def longest_consecutive_streak(completions: Completions) -> int:
    """Longest run of consecutive calendar days with ``count > 0``."""

    longest = 0
    run = 0
    last_day: date | None = None
    for d in _completed_days(completions):
        if last_day is None or d == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d
    return longest


def current_streak(completions: Completions, today: date) -> int:
    """Consecutive completed days ending on ``today``; 0 if today is not done."""

    done = set(_completed_days(completions))
    streak = 0
    cursor = today
    while cursor in done:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def consistency_rate(completions: Completions, creation_date: datetime | date, today: date) -> float:
    """Percent of days since creation (creation day is day 1) with a completion."""

    days_done = sum(1 for entry in completions.values() if entry.count > 0)
    created = local_day(creation_date) if isinstance(creation_date, datetime) else creation_date
    # A creation day after today still counts as one day.
    days_since_creation = max(1, days_between(created, today) + 1)
    return min(days_done / days_since_creation * 100, 100.0)


def aggregate_by_name(records: Iterable[HabitRecord]) -> list[HabitAggregate]:
    """Merge records that share a name, in first-seen order.

    Completions are summed per day and the earliest creation date wins.
    Archived habits are included.
    """

    grouped: dict[str, HabitAggregate] = {}
    for record in records:
        aggregate = grouped.get(record.name)
        if aggregate is None:
            aggregate = HabitAggregate(name=record.name, creation_date=record.creation_date)
            grouped[record.name] = aggregate
        elif to_local(record.creation_date) < to_local(aggregate.creation_date):
            aggregate.creation_date = record.creation_date
        aggregate.ids.append(record.id)
        for key, entry in record.completions.items():
            merged = aggregate.completions.setdefault(key, CompletionEntry())
            merged.count += entry.count
            merged.total_value += entry.total_value
    return list(grouped.values())


def chart_metrics(aggregates: Iterable[HabitAggregate], today: date) -> list[HabitChartMetrics]:
    return [
        HabitChartMetrics(
            name=agg.name,
            max_daily_count=max_daily_count(agg.completions),
            longest_streak=longest_consecutive_streak(agg.completions),
            consistency_rate=round(consistency_rate(agg.completions, agg.creation_date, today), 1),
        )
        for agg in aggregates
    ]


def completed_days_in_month(records: Iterable[HabitRecord], year: int, month: int) -> set[str]:
    """Day keys in the month on which any habit was logged at least once."""

    days: set[str] = set()
    for record in records:
        for key, entry in record.completions.items():
            if entry.count <= 0:
                continue
            day = parse_day_key(key)
            if (day.year, day.month) == (year, month):
                days.add(key)
    return days


def calendar_month(records: Iterable[HabitRecord], year: int, month: int) -> CalendarMonth:
    completed = completed_days_in_month(records, year, month)
    first_weekday, length = calendar.monthrange(year, month)
    days = []
    for number in range(1, length + 1):
        key = day_key(date(year, month, number))
        days.append(CalendarDay(day_key=key, day=number, completed=key in completed))
    # monthrange counts Monday as 0; the grid starts on Sunday.
    return CalendarMonth(year=year, month=month, leading_blanks=(first_weekday + 1) % 7, days=days)


__all__ = [
    "CalendarDay",
    "CalendarMonth",
    "HabitAggregate",
    "HabitChartMetrics",
    "ProgressReport",
    "aggregate_by_name",
    "calendar_month",
    "chart_metrics",
    "completed_days_in_month",
    "consistency_rate",
    "current_streak",
    "daily_progress_percent",
    "habit_progress",
    "longest_consecutive_streak",
    "max_daily_count",
    "today_progress",
    "weekly_progress_percent",
]
