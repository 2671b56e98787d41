"""Repository protocol definitions for domain layer."""

from .habit_store import HabitStore

__all__ = ["HabitStore"]
