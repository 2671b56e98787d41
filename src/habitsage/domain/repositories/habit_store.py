"""Habit store protocol."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ...models.habit import HabitRecord


class HabitStore(Protocol):
    """Single durable slot holding the whole habit collection."""

    def load(self) -> Optional[list[Any]]:
        """Return the raw stored collection, or None when nothing was saved yet."""
        ...

    def save(self, records: Sequence[HabitRecord]) -> None:
        """Rewrite the slot with the given records."""
        ...

    def clear(self) -> None:
        """Remove the slot entirely."""
        ...
