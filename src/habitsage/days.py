"""Day-key helpers shared by every date-diffing computation.

Completions are keyed by ``YYYY-MM-DD`` strings in the local calendar. Any
comparison between days goes through :func:`parse_day_key` so ordering never
depends on string order or dict insertion order.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

DAY_KEY_FORMAT = "%Y-%m-%d"


def day_key(day: date | datetime) -> str:
    """Return the canonical key for a calendar day."""

    if isinstance(day, datetime):
        day = local_day(day)
    return day.isoformat()


def parse_day_key(key: str) -> date:
    """Parse a ``YYYY-MM-DD`` key; raises ``ValueError`` on anything else."""

    if not isinstance(key, str) or len(key) != 10:
        raise ValueError(f"Invalid day key: {key!r}")
    return datetime.strptime(key, DAY_KEY_FORMAT).date()


def is_day_key(key: object) -> bool:
    try:
        parse_day_key(key)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return True


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting the ``Z`` UTC suffix."""

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_local(moment: datetime) -> datetime:
    """Timezone-aware local time; naive values are taken as local already."""

    return moment.astimezone()


def local_day(moment: datetime) -> date:
    """Calendar day of ``moment`` in the local timezone."""

    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def week_start(day: date) -> date:
    """Monday of the week containing ``day`` (Sunday belongs to the week before it)."""

    return day - timedelta(days=day.weekday())


def week_days(day: date) -> list[date]:
    """The seven days Monday..Sunday of the week containing ``day``."""

    monday = week_start(day)
    return [monday + timedelta(days=offset) for offset in range(7)]


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when end is earlier)."""

    return (end - start).days


__all__ = [
    "DAY_KEY_FORMAT",
    "day_key",
    "days_between",
    "is_day_key",
    "local_day",
    "parse_day_key",
    "parse_timestamp",
    "to_local",
    "week_days",
    "week_start",
]
