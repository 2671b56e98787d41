"""Habit tracking data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Optional, Union

from ..days import parse_timestamp
from ..errors import NotFoundError

HabitId = Union[int, str]

DISCRETE_UNIT = "times"
TARGET_UNITS: tuple[str, ...] = (
    DISCRETE_UNIT,
    "hours",
    "minutes",
    "km",
    "miles",
    "pages",
    "glasses",
    "servings",
    "calls",
)


class Frequency(str, Enum):
    """Which windowing rule applies to a habit's progress."""

    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def parse(cls, raw: "Frequency | str") -> "Frequency":
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).strip().lower())


def _compact_number(value: float) -> int | float:
    """Write integral floats as ints so stored JSON stays readable."""

    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(slots=True)
class CompletionEntry:
    """Log events for one habit on one calendar day."""

    count: int = 0
    total_value: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "totalValue": _compact_number(self.total_value)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CompletionEntry":
        return cls(count=int(raw["count"]), total_value=raw["totalValue"])

    def copy(self) -> "CompletionEntry":
        return CompletionEntry(count=self.count, total_value=self.total_value)


@dataclass(slots=True)
class HabitRecord:
    """A user-defined habit and its date-keyed completion ledger."""

    id: HabitId
    name: str
    frequency: Frequency
    creation_date: datetime
    target_value: float = 1
    target_unit: str = DISCRETE_UNIT
    completions: dict[str, CompletionEntry] = field(default_factory=dict)
    is_archived: bool = False
    snooze_until: Optional[datetime] = None

    @property
    def is_discrete(self) -> bool:
        """True when each log event counts as exactly one unit."""
        return self.target_unit == DISCRETE_UNIT

    def matches_id(self, habit_id: HabitId) -> bool:
        return str(self.id) == str(habit_id)

    def to_dict(self) -> dict[str, Any]:
        """Canonical camelCase shape written to the storage slot."""
        return {
            "id": self.id,
            "name": self.name,
            "frequency": self.frequency.value,
            "creationDate": self.creation_date.isoformat(),
            "targetValue": _compact_number(self.target_value),
            "targetUnit": self.target_unit,
            "completions": {day: entry.to_dict() for day, entry in self.completions.items()},
            "isArchived": self.is_archived,
            "snoozeUntil": self.snooze_until.isoformat() if self.snooze_until else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HabitRecord":
        """Build a record from an already-normalized canonical dict."""
        snooze = raw.get("snoozeUntil")
        return cls(
            id=raw["id"],
            name=raw["name"],
            frequency=Frequency.parse(raw["frequency"]),
            creation_date=parse_timestamp(raw["creationDate"]),
            target_value=raw["targetValue"],
            target_unit=raw["targetUnit"],
            completions={
                day: CompletionEntry.from_dict(entry)
                for day, entry in raw["completions"].items()
            },
            is_archived=bool(raw["isArchived"]),
            snooze_until=parse_timestamp(snooze) if snooze else None,
        )


class HabitCollection:
    """Owned, injectable container for the in-memory habit list."""

    def __init__(self, records: Optional[list[HabitRecord]] = None):
        self._records: list[HabitRecord] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HabitRecord]:
        return iter(list(self._records))

    def snapshot(self) -> list[HabitRecord]:
        return list(self._records)

    def find(self, habit_id: HabitId) -> Optional[HabitRecord]:
        for record in self._records:
            if record.matches_id(habit_id):
                return record
        return None

    def require(self, habit_id: HabitId) -> HabitRecord:
        record = self.find(habit_id)
        if record is None:
            raise NotFoundError(habit_id)
        return record

    def contains_id(self, habit_id: HabitId) -> bool:
        return self.find(habit_id) is not None

    def append(self, record: HabitRecord) -> None:
        self._records.append(record)

    def replace_all(self, records: list[HabitRecord]) -> None:
        self._records = list(records)

    def clear(self) -> None:
        self._records = []

    def active(self) -> list[HabitRecord]:
        """Habits shown in the main list (not archived)."""
        return [r for r in self._records if not r.is_archived]

    def archived(self) -> list[HabitRecord]:
        return [r for r in self._records if r.is_archived]


__all__ = [
    "CompletionEntry",
    "DISCRETE_UNIT",
    "Frequency",
    "HabitCollection",
    "HabitId",
    "HabitRecord",
    "TARGET_UNITS",
]
