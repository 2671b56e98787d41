"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelHabitStore
from .services.tracker import Clock, HabitTracker


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    habit_store: SQLModelHabitStore
    tracker: HabitTracker

    def dispose(self) -> None:
        """Release pooled database connections."""
        self.engine.dispose()


def create_app_context(
    config: Optional[BaseConfig] = None, *, clock: Optional[Clock] = None
) -> AppContext:
    """Create the context and load the stored habit collection."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    habit_store = SQLModelHabitStore(session_factory, key=config.STORAGE_KEY)
    tracker = HabitTracker(habit_store, clock=clock) if clock else HabitTracker(habit_store)
    tracker.load()

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_store=habit_store,
        tracker=tracker,
    )
