"""Upgrade persisted habit records of any historical shape to the canonical one.

Three shapes have been written to the storage slot over time:

* ``completedDates``: a list of day keys, one completion each, no targets.
* bare counts: ``completions`` maps day keys to plain integers and the goal
  lives in ``targetCount``.
* canonical: ``completions`` maps day keys to ``{count, totalValue}`` objects,
  with ``targetValue``, ``targetUnit`` and ``isArchived``.

Shapes are told apart by probing fields, converted by one function each, then
passed through shared defaulting. Running the pass on its own output changes
nothing.
"""

from __future__ import annotations

import copy
import math
from enum import Enum
from typing import Any, Iterable

from ..days import is_day_key, parse_timestamp
from ..logging_config import get_logger
from ..models.habit import DISCRETE_UNIT, TARGET_UNITS, Frequency, HabitRecord

logger = get_logger("migration")

_REQUIRED_FIELDS = ("id", "name", "creationDate")


class RecordShape(str, Enum):
    """Structural variants a stored record can take."""

    COMPLETED_DATES = "completed_dates"
    BARE_COUNTS = "bare_counts"
    CANONICAL = "canonical"


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def detect_shape(raw: dict[str, Any]) -> RecordShape:
    """Classify a raw record; ``completedDates`` wins over everything else."""

    if isinstance(raw.get("completedDates"), list):
        return RecordShape.COMPLETED_DATES
    completions = raw.get("completions")
    if isinstance(completions, dict) and any(_is_number(v) for v in completions.values()):
        return RecordShape.BARE_COUNTS
    return RecordShape.CANONICAL


def _coerce_entry(name: str, day: Any, value: Any) -> dict[str, Any] | None:
    """Turn one stored completion value into ``{count, totalValue}`` or drop it."""

    if not is_day_key(day):
        logger.warning("Dropping completion with invalid day key", extra={"habit": name, "day": day})
        return None
    if _is_number(value):
        count = max(int(value), 0)
        return {"count": count, "totalValue": count}
    if isinstance(value, dict) and _is_number(value.get("count", 0)):
        count = max(int(value.get("count", 0)), 0)
        total = value.get("totalValue", count)
        if not _is_number(total):
            total = count
        return {"count": count, "totalValue": max(total, 0)}
    logger.warning("Dropping unreadable completion", extra={"habit": name, "day": day})
    return None


def _coerce_completions(name: str, completions: Any) -> dict[str, dict[str, Any]]:
    result: dict[str, dict[str, Any]] = {}
    if not isinstance(completions, dict):
        return result
    for day, value in completions.items():
        entry = _coerce_entry(name, day, value)
        if entry is not None:
            result[day] = entry
    return result


def _from_completed_dates(record: dict[str, Any]) -> dict[str, Any]:
    name = record.get("name")
    logger.info("Migrating completedDates habit", extra={"habit": name})
    dates = record.pop("completedDates")
    # Existing entries are coerced once; listed days only fill the gaps.
    completions = _coerce_completions(name, record.get("completions"))
    for day in dates:
        if not is_day_key(day):
            logger.warning("Dropping completion with invalid day key", extra={"habit": name, "day": day})
            continue
        completions.setdefault(day, {"count": 1, "totalValue": 1})
    record["completions"] = completions
    return record


def _from_bare_counts(record: dict[str, Any]) -> dict[str, Any]:
    name = record.get("name")
    logger.info("Migrating numeric completions habit", extra={"habit": name})
    record["completions"] = _coerce_completions(name, record.get("completions"))
    return record


def _from_canonical(record: dict[str, Any]) -> dict[str, Any]:
    record["completions"] = _coerce_completions(record.get("name"), record.get("completions"))
    return record


_CONVERTERS = {
    RecordShape.COMPLETED_DATES: _from_completed_dates,
    RecordShape.BARE_COUNTS: _from_bare_counts,
    RecordShape.CANONICAL: _from_canonical,
}


def _apply_defaults(record: dict[str, Any]) -> dict[str, Any]:
    target_count = record.pop("targetCount", None)
    if "targetValue" not in record and target_count is not None:
        record["targetValue"] = target_count

    target = record.get("targetValue")
    if not _is_number(target) or target <= 0:
        if target is not None:
            logger.warning(
                "Resetting invalid target value", extra={"habit": record.get("name"), "target": target}
            )
        record["targetValue"] = 1

    if record.get("targetUnit") not in TARGET_UNITS:
        record["targetUnit"] = DISCRETE_UNIT

    if "isArchived" not in record:
        record["isArchived"] = False
    record["isArchived"] = bool(record["isArchived"])

    record.setdefault("snoozeUntil", None)

    frequency = record.get("frequency")
    try:
        record["frequency"] = Frequency.parse(frequency).value
    except ValueError:
        logger.warning(
            "Unknown frequency, defaulting to daily", extra={"habit": record.get("name"), "frequency": frequency}
        )
        record["frequency"] = Frequency.DAILY.value
    return record


def _is_readable(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    if any(raw.get(key) in (None, "") for key in _REQUIRED_FIELDS):
        return False
    try:
        parse_timestamp(str(raw["creationDate"]))
    except ValueError:
        return False
    snooze = raw.get("snoozeUntil")
    if snooze:
        try:
            parse_timestamp(str(snooze))
        except ValueError:
            return False
    return True


def normalize_record(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the canonical camelCase dict for one stored record.

    The input is left untouched.
    """

    record = copy.deepcopy(raw)
    shape = detect_shape(record)
    record = _CONVERTERS[shape](record)
    return _apply_defaults(record)


def normalize(raw_collection: Iterable[Any] | None) -> list[HabitRecord]:
    """Migrate a raw stored collection into canonical ``HabitRecord`` objects."""

    records: list[HabitRecord] = []
    for raw in raw_collection or []:
        if not _is_readable(raw):
            logger.warning("Skipping corrupt habit record", extra={"record": raw})
            continue
        records.append(HabitRecord.from_dict(normalize_record(raw)))
    return records


__all__ = ["RecordShape", "detect_shape", "normalize", "normalize_record"]
