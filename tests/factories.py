"""Trade builders shared by the unit, property and golden tests."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from journal_analytics.core.enums import TradeTag
from journal_analytics.core.models import AnalyzableTrade

IST = ZoneInfo("Asia/Kolkata")

# Monday, noon in Mumbai: clear of the session edges and the FOMO windows.
BASE_TIME = datetime(2024, 3, 4, 12, 0, tzinfo=IST).astimezone(timezone.utc)


def ist(hour: int, minute: int = 0, day: int = 4) -> datetime:
    """A March 2024 wall-clock time in Asia/Kolkata, as aware UTC."""
    return datetime(2024, 3, day, hour, minute, tzinfo=IST).astimezone(timezone.utc)


def make_trade(
    trade_id: str = "t1",
    pnl: float = 0.0,
    size: float = 1.0,
    entry: datetime | None = None,
    *,
    hold_minutes: float | None = 60.0,
    tags: Iterable[TradeTag] = (),
    emotional_tags: Iterable[TradeTag] = (),
    strategy: str = "unknown",
) -> AnalyzableTrade:
    entry_time = entry or BASE_TIME
    exit_time = (
        entry_time + timedelta(minutes=hold_minutes) if hold_minutes is not None else None
    )
    return AnalyzableTrade(
        id=trade_id,
        entry_time=entry_time,
        exit_time=exit_time,
        pnl=float(pnl),
        size=float(size),
        strategy_type=strategy,
        tags=frozenset(tags),
        emotional_tags=frozenset(emotional_tags),
    )


def make_series(
    pnls: Sequence[float],
    *,
    sizes: Sequence[float] | None = None,
    start: datetime | None = None,
    spacing: timedelta = timedelta(days=1),
    hold_minutes: float | None = 60.0,
    tags: Iterable[TradeTag] = (),
) -> list[AnalyzableTrade]:
    """One trade per pnl, ``spacing`` apart (one per day by default)."""
    start = start or BASE_TIME
    tags = tuple(tags)
    return [
        make_trade(
            f"t{i}",
            pnl,
            sizes[i] if sizes is not None else 1.0,
            start + spacing * i,
            hold_minutes=hold_minutes,
            tags=tags,
        )
        for i, pnl in enumerate(pnls)
    ]
