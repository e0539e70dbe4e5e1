"""Staleness window for abandonment detection."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class RecoveryWindow:
    """Half-open interval ``[start, end)`` of ``last_modified`` values eligible for recovery.

    ``start`` is ``now - max_age`` (inclusive), ``end`` is ``now - min_age`` (exclusive).
    """

    start: datetime
    end: datetime


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite hands them back without tzinfo)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def compute_window(now: datetime, min_age: timedelta, max_age: timedelta) -> RecoveryWindow:
    """Window of carts stale enough to be abandoned but fresh enough to be worth a nudge."""
    if min_age <= timedelta(0) or min_age >= max_age:
        raise ValueError("expected 0 < min_age < max_age")
    now = as_utc(now)
    return RecoveryWindow(start=now - max_age, end=now - min_age)
