"""Typed failures raised by the habit tracker core."""

from __future__ import annotations


class HabitSageError(Exception):
    """Base class for every error the core raises on purpose."""


class ValidationError(HabitSageError, ValueError):
    """Rejected user input (blank name, bad target, bad logged amount)."""


class NotFoundError(HabitSageError, LookupError):
    """A command addressed a habit id that is not in the collection."""

    def __init__(self, habit_id: object):
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class PersistenceError(HabitSageError, RuntimeError):
    """The storage slot could not be read or written."""


__all__ = ["HabitSageError", "NotFoundError", "PersistenceError", "ValidationError"]
