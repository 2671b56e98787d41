"""Mutation commands and read queries over the in-memory habit collection."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from ..days import day_key, local_day
from ..domain.repositories.habit_store import HabitStore
from ..errors import PersistenceError, ValidationError
from ..logging_config import get_logger
from ..models.habit import (
    TARGET_UNITS,
    CompletionEntry,
    Frequency,
    HabitCollection,
    HabitId,
    HabitRecord,
)
from . import habits as metrics
from .migration import normalize
from .reminders import Reminder, due_reminders

logger = get_logger("tracker")

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True)
class MutationResult:
    """Outcome of a command; ``saved`` is False when write-through failed."""

    habit: Optional[HabitRecord] = None
    saved: bool = True
    warning: Optional[str] = None


def _parse_positive(value: object, what: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{what} must be a positive number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{what} must be a positive number") from exc
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{what} must be a positive number")
    return number


class HabitTracker:
    """Owns the habit collection and writes it through to the store.

    Commands run one at a time under a lock so a mutation and its save never
    interleave with another command or with a reader on the scheduler thread.
    """

    def __init__(
        self,
        store: HabitStore,
        *,
        collection: Optional[HabitCollection] = None,
        clock: Clock = _local_now,
    ):
        self.store = store
        self.collection = collection if collection is not None else HabitCollection()
        self.clock = clock
        self._lock = threading.RLock()

    # Loading
    def load(self) -> list[HabitRecord]:
        """Replace the collection with the migrated contents of the store."""
        with self._lock:
            try:
                raw = self.store.load()
            except PersistenceError as exc:
                logger.warning("Could not load habits, starting empty: %s", exc)
                raw = None
            records = normalize(raw) if raw is not None else []
            self.collection.replace_all(records)
            logger.info("Habit collection ready", extra={"count": len(records)})
            return self.collection.snapshot()

    def _save(self, habit: Optional[HabitRecord]) -> MutationResult:
        try:
            self.store.save(self.collection.snapshot())
        except PersistenceError as exc:
            logger.warning("Change kept in memory but not saved: %s", exc)
            return MutationResult(habit=habit, saved=False, warning=str(exc))
        return MutationResult(habit=habit)

    def _today(self) -> date:
        return local_day(self.clock())

    def _new_id(self, now: datetime) -> int:
        candidate = int(now.timestamp() * 1000)
        while self.collection.contains_id(candidate):
            candidate += 1
        return candidate

    # Commands
    def add_habit(
        self,
        name: str,
        frequency: Frequency | str = Frequency.DAILY,
        target_value: float | str = 1,
        target_unit: str = "times",
    ) -> MutationResult:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Habit name cannot be empty.")
        try:
            parsed_frequency = Frequency.parse(frequency)
        except ValueError as exc:
            raise ValidationError(f"Unknown frequency: {frequency}") from exc
        target = _parse_positive(target_value, "Target value")
        if target_unit not in TARGET_UNITS:
            raise ValidationError(f"Unknown target unit: {target_unit}")

        with self._lock:
            now = self.clock()
            record = HabitRecord(
                id=self._new_id(now),
                name=clean_name,
                frequency=parsed_frequency,
                creation_date=now,
                target_value=target,
                target_unit=target_unit,
            )
            self.collection.append(record)
            logger.info("Habit added", extra={"habit_id": record.id, "habit": record.name})
            return self._save(record)

    def log_completion(self, habit_id: HabitId, amount: float | str | None = None) -> MutationResult:
        """Record one log event for today."""
        with self._lock:
            record = self.collection.require(habit_id)
            if record.is_discrete:
                value = 1.0
            else:
                if amount is None:
                    raise ValidationError(f"An amount in {record.target_unit} is required.")
                value = _parse_positive(amount, "Logged amount")

            entry = record.completions.setdefault(day_key(self._today()), CompletionEntry())
            entry.count += 1
            entry.total_value += value
            logger.info(
                "Completion logged",
                extra={"habit_id": record.id, "count": entry.count, "total_value": entry.total_value},
            )
            return self._save(record)

    def _set_archived(self, habit_id: HabitId, archived: bool) -> MutationResult:
        with self._lock:
            record = self.collection.require(habit_id)
            record.is_archived = archived
            logger.info("Habit archive flag changed", extra={"habit_id": record.id, "archived": archived})
            return self._save(record)

    def archive(self, habit_id: HabitId) -> MutationResult:
        return self._set_archived(habit_id, True)

    def restore(self, habit_id: HabitId) -> MutationResult:
        return self._set_archived(habit_id, False)

    def snooze(self, habit_id: HabitId, until: Optional[datetime]) -> MutationResult:
        """Suppress reminders for a habit until ``until`` (None clears it)."""
        with self._lock:
            record = self.collection.require(habit_id)
            record.snooze_until = until
            logger.info("Habit snoozed", extra={"habit_id": record.id, "until": until})
            return self._save(record)

    def clear_all(self) -> MutationResult:
        """Drop every habit and the stored slot. Confirmation is the caller's job."""
        with self._lock:
            self.collection.clear()
            try:
                self.store.clear()
            except PersistenceError as exc:
                logger.warning("Collection cleared in memory but slot not removed: %s", exc)
                return MutationResult(saved=False, warning=str(exc))
            logger.info("All habit data cleared")
            return MutationResult()

    # Queries
    def habits(self) -> list[HabitRecord]:
        with self._lock:
            return self.collection.snapshot()

    def active_habits(self) -> list[HabitRecord]:
        with self._lock:
            return self.collection.active()

    def archived_habits(self) -> list[HabitRecord]:
        with self._lock:
            return self.collection.archived()

    def get(self, habit_id: HabitId) -> HabitRecord:
        with self._lock:
            return self.collection.require(habit_id)

    def progress(self, habit_id: HabitId) -> metrics.ProgressReport:
        return metrics.habit_progress(self.get(habit_id), self._today())

    def chart_metrics(self) -> list[metrics.HabitChartMetrics]:
        return metrics.chart_metrics(metrics.aggregate_by_name(self.habits()), self._today())

    def calendar_month(self, year: int, month: int) -> metrics.CalendarMonth:
        return metrics.calendar_month(self.habits(), year, month)

    def due_reminders(self) -> list[Reminder]:
        now = self.clock()
        return due_reminders(self.habits(), local_day(now), now)


__all__ = ["Clock", "HabitTracker", "MutationResult"]
