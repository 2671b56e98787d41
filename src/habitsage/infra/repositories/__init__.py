"""Concrete repository implementations using SQLModel."""

from .habit_store import SQLModelHabitStore

__all__ = ["SQLModelHabitStore"]
