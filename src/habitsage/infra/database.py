"""SQLite engine and unit-of-work sessions for the storage slot."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..models.storage import StorageSlot

SessionFactory = Callable[[], ContextManager[Session]]


def create_db_engine(config: BaseConfig) -> Engine:
    return create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())


def init_database(engine: Engine) -> None:
    """Create the ``storage_slot`` table when the database file is new."""
    SQLModel.metadata.create_all(engine, tables=[StorageSlot.__table__])


def create_session_factory(engine: Engine) -> SessionFactory:
    """Return a factory whose sessions are one transaction each.

    Leaving the ``with`` block commits; an exception rolls back and propagates.
    Callers never commit themselves.
    """

    @contextmanager
    def unit_of_work() -> Iterator[Session]:
        with Session(engine, expire_on_commit=False) as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    return unit_of_work


def bootstrap_database(config: BaseConfig) -> tuple[Engine, SessionFactory]:
    """Engine with its schema in place, plus the session factory bound to it."""

    engine = create_db_engine(config)
    init_database(engine)
    return engine, create_session_factory(engine)
