"""SQLModel implementation of the habit store."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..database import SessionFactory
from ...errors import PersistenceError
from ...logging_config import get_logger
from ...models.habit import HabitRecord
from ...models.storage import StorageSlot

logger = get_logger("store")


class SQLModelHabitStore:
    """Stores the serialized collection in one ``storage_slot`` row."""

    def __init__(self, session_factory: SessionFactory, *, key: str = "habits"):
        self.session_factory = session_factory
        self.key = key

    def load(self) -> Optional[list[Any]]:
        """Return the decoded JSON array, or None when the slot is absent."""
        try:
            with self.session_factory() as session:
                slot = session.exec(select(StorageSlot).where(StorageSlot.key == self.key)).first()
                payload = slot.value if slot else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read slot {self.key!r}: {exc}") from exc

        if payload is None:
            logger.info("No stored habits found", extra={"slot": self.key})
            return None
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Slot {self.key!r} does not hold valid JSON") from exc
        if not isinstance(data, list):
            raise PersistenceError(f"Slot {self.key!r} does not hold a JSON array")
        logger.info("Habits loaded", extra={"slot": self.key, "count": len(data)})
        return data

    def save(self, records: Sequence[HabitRecord]) -> None:
        """Rewrite the whole slot."""
        payload = json.dumps([record.to_dict() for record in records])
        try:
            with self.session_factory() as session:
                slot = session.exec(select(StorageSlot).where(StorageSlot.key == self.key)).first()
                if slot:
                    slot.value = payload
                    slot.updated_at = datetime.now(timezone.utc)
                else:
                    slot = StorageSlot(key=self.key, value=payload)
                session.add(slot)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not write slot {self.key!r}: {exc}") from exc
        logger.info("Habits saved", extra={"slot": self.key, "count": len(records)})

    def clear(self) -> None:
        """Delete the slot row if it exists."""
        try:
            with self.session_factory() as session:
                slot = session.exec(select(StorageSlot).where(StorageSlot.key == self.key)).first()
                if slot:
                    session.delete(slot)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not clear slot {self.key!r}: {exc}") from exc
        logger.info("Habit slot cleared", extra={"slot": self.key})


__all__ = ["SQLModelHabitStore"]
