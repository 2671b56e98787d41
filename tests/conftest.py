"""Pytest configuration and shared fixtures for HabitSage tests.

This module provides database fixtures, test data factories, and fake stores
for testing migration, metrics and the tracker without touching the real app
database.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional, Sequence

import pytest
from sqlmodel import SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitsage.models import CompletionEntry, Frequency, HabitRecord, StorageSlot  # noqa: F401
from habitsage.config import BaseConfig
from habitsage.context import create_app_context
from habitsage.errors import PersistenceError
from habitsage.infra.database import create_session_factory
from habitsage.infra.repositories import SQLModelHabitStore
from habitsage.services.tracker import HabitTracker

# Wednesday; its Monday..Sunday week is 2024-01-08..2024-01-14.
FIXED_NOW = datetime(2024, 1, 10, 9, 30)


# =============================================================================
# Clock
# =============================================================================


class FrozenClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the app context builds."""
    return create_session_factory(db_engine)


@pytest.fixture
def habit_store(session_factory) -> SQLModelHabitStore:
    return SQLModelHabitStore(session_factory)


@pytest.fixture
def tracker(habit_store, clock) -> HabitTracker:
    """Tracker backed by the SQLite store with a frozen clock."""
    t = HabitTracker(habit_store, clock=clock)
    t.load()
    return t


@pytest.fixture
def app_context(tmp_path, monkeypatch, clock):
    """Full application context rooted in a temporary data directory."""

    monkeypatch.setenv("HABITSAGE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("HABITSAGE_DATABASE_URL", raising=False)
    monkeypatch.delenv("HABITSAGE_STORAGE_KEY", raising=False)
    app = create_app_context(BaseConfig(), clock=clock)
    yield app
    app.dispose()


# =============================================================================
# Fake Stores
# =============================================================================


class InMemoryHabitStore:
    """Store double that keeps the serialized payload in a list."""

    def __init__(self, data: Optional[list[Any]] = None):
        self.data = data
        self.save_calls = 0

    def load(self) -> Optional[list[Any]]:
        return self.data

    def save(self, records: Sequence[HabitRecord]) -> None:
        self.save_calls += 1
        self.data = [record.to_dict() for record in records]

    def clear(self) -> None:
        self.data = None


class FailingHabitStore(InMemoryHabitStore):
    """Store double whose every operation fails like a full or broken disk."""

    def load(self) -> Optional[list[Any]]:
        raise PersistenceError("slot unreadable")

    def save(self, records: Sequence[HabitRecord]) -> None:
        self.save_calls += 1
        raise PersistenceError("quota exceeded")

    def clear(self) -> None:
        raise PersistenceError("quota exceeded")


@pytest.fixture
def memory_store() -> InMemoryHabitStore:
    return InMemoryHabitStore()


@pytest.fixture
def failing_store() -> FailingHabitStore:
    return FailingHabitStore()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory():
    """Factory for building in-memory habit records.

    Returns:
        Callable: Function that creates HabitRecord instances
    """
    counter = {"next_id": 1}

    def _create_habit(
        name: str = "Test Habit",
        frequency: str = "daily",
        target_value: float = 1,
        target_unit: str = "times",
        completions: Optional[dict[str, Any]] = None,
        created: datetime = datetime(2024, 1, 1, 8, 0),
        is_archived: bool = False,
        snooze_until: Optional[datetime] = None,
        habit_id: Optional[int] = None,
    ) -> HabitRecord:
        """Create a habit with sensible defaults.

        Args:
            completions: Day key to a count, or to a ``(count, total_value)`` pair

        Returns:
            HabitRecord: Unsaved record
        """
        if habit_id is None:
            habit_id = counter["next_id"]
            counter["next_id"] += 1

        entries = {}
        for key, value in (completions or {}).items():
            if isinstance(value, tuple):
                entries[key] = CompletionEntry(count=value[0], total_value=value[1])
            else:
                entries[key] = CompletionEntry(count=value, total_value=value)

        return HabitRecord(
            id=habit_id,
            name=name,
            frequency=Frequency.parse(frequency),
            creation_date=created,
            target_value=target_value,
            target_unit=target_unit,
            completions=entries,
            is_archived=is_archived,
            snooze_until=snooze_until,
        )

    return _create_habit
