"""Habit data structures and SQLModel table exports."""

from .habit import (
    DISCRETE_UNIT,
    TARGET_UNITS,
    CompletionEntry,
    Frequency,
    HabitCollection,
    HabitId,
    HabitRecord,
)
from .storage import StorageSlot

__all__ = [
    "CompletionEntry",
    "DISCRETE_UNIT",
    "Frequency",
    "HabitCollection",
    "HabitId",
    "HabitRecord",
    "StorageSlot",
    "TARGET_UNITS",
]
