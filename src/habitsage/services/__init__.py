"""Service module exports."""

from . import habits, migration, reminders, tracker

__all__ = [
    "habits",
    "migration",
    "reminders",
    "tracker",
]
