"""Reminder eligibility for the periodic sweep (read-only)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from ..days import to_local
from ..models.habit import Frequency, HabitId, HabitRecord
from .habits import today_progress


@dataclass(frozen=True)
class Reminder:
    """One unmet habit the notifier should nudge about."""

    habit_id: HabitId
    name: str


def is_snoozed(record: HabitRecord, now: datetime) -> bool:
    if record.snooze_until is None:
        return False
    return to_local(now) < to_local(record.snooze_until)


def is_reminder_eligible(record: HabitRecord, now: datetime) -> bool:
    """Active daily counting habits that are not snoozed.

    Continuous units (hours, km, ...) are left out: a count of log events says
    nothing about whether the measured target was reached.
    """

    return (
        not record.is_archived
        and record.frequency is Frequency.DAILY
        and record.is_discrete
        and not is_snoozed(record, now)
    )


def due_reminders(records: Iterable[HabitRecord], today: date, now: datetime) -> list[Reminder]:
    """Eligible habits whose logged count for ``today`` is below target."""

    reminders = []
    for record in records:
        if not is_reminder_eligible(record, now):
            continue
        if today_progress(record, today).count < record.target_value:
            reminders.append(Reminder(habit_id=record.id, name=record.name))
    return reminders


__all__ = ["Reminder", "due_reminders", "is_reminder_eligible", "is_snoozed"]
