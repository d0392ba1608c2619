"""Clock abstraction for the analysis reference time.

WallClock: real wall-clock time (production callers)
FixedClock: frozen time (tests, reproducible re-runs)

The engine never calls datetime.now() directly; the 30-day window is
bounded by an explicit ``as_of`` that is read from a clock exactly once
per analysis run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time as timezone-aware UTC datetime."""
        ...


class WallClock:
    """Real wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Frozen clock for deterministic analysis.

    Time changes only when explicitly set.
    """

    def __init__(self, at: datetime | None = None) -> None:
        self._time = ensure_utc(at or datetime(2024, 1, 1, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._time

    def set_time(self, t: datetime) -> None:
        self._time = ensure_utc(t)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
