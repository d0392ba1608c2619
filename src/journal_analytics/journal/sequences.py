"""Sequence helpers shared by the emotional calculator and pattern rules.

All functions take trades sorted by entry time and never mutate them.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from journal_analytics.core.models import AnalyzableTrade


@dataclass(frozen=True)
class Streak:
    """Maximal run of same-outcome trades, inclusive indices."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def local_day(ts: datetime, tz: ZoneInfo) -> date:
    return ts.astimezone(tz).date()


def trades_per_day(trades: Sequence[AnalyzableTrade], tz: ZoneInfo) -> Counter[date]:
    """Trade count per market-calendar day of entry."""
    return Counter(local_day(t.entry_time, tz) for t in trades)


def find_streaks(
    trades: Sequence[AnalyzableTrade],
    predicate: Callable[[AnalyzableTrade], bool],
    min_length: int = 2,
) -> list[Streak]:
    """Maximal runs of trades satisfying *predicate*, at least *min_length* long."""
    streaks: list[Streak] = []
    start = -1
    for i, trade in enumerate(trades):
        if predicate(trade):
            if start == -1:
                start = i
            continue
        if start != -1 and i - start >= min_length:
            streaks.append(Streak(start, i - 1))
        start = -1
    if start != -1 and len(trades) - start >= min_length:
        streaks.append(Streak(start, len(trades) - 1))
    return streaks


def losing_streaks(trades: Sequence[AnalyzableTrade], min_length: int = 2) -> list[Streak]:
    return find_streaks(trades, lambda t: t.is_loss, min_length)


def winning_streaks(trades: Sequence[AnalyzableTrade], min_length: int = 2) -> list[Streak]:
    return find_streaks(trades, lambda t: t.is_win, min_length)


def minutes_after_prior_exit(prior: AnalyzableTrade, current: AnalyzableTrade) -> float:
    """Minutes from the prior trade's exit (or entry) to the current entry."""
    return (current.entry_time - prior.effective_exit).total_seconds() / 60.0


def quick_entries_after_loss(
    trades: Sequence[AnalyzableTrade], within_minutes: float
) -> list[int]:
    """Indices of trades entered within *within_minutes* of a losing trade.

    Only consecutive pairs are scanned, so each trade counts at most once.
    """
    return [
        i
        for i in range(1, len(trades))
        if trades[i - 1].is_loss
        and minutes_after_prior_exit(trades[i - 1], trades[i]) < within_minutes
    ]


def consecutive_wins_before(trades: Sequence[AnalyzableTrade], index: int) -> int:
    """Length of the unbroken winning run ending right before *index*."""
    count = 0
    j = index - 1
    while j >= 0 and trades[j].is_win:
        count += 1
        j -= 1
    return count


def total(values: Iterable[float]) -> float:
    """Exact float sum; ``inf`` instead of raising when it overflows."""
    values = list(values)
    try:
        return math.fsum(values)
    except OverflowError:
        return sum(values)


def mean(values: Sequence[float]) -> float:
    return total(values) / len(values) if values else 0.0


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty list."""
    if not values:
        return 0.0
    mu = mean(values)
    return math.sqrt(total([(v - mu) * (v - mu) for v in values]) / len(values))


def fraction(trades: Sequence[AnalyzableTrade], predicate: Callable[[AnalyzableTrade], bool]) -> float:
    """Share of *trades* satisfying *predicate*; 0.0 for an empty list."""
    if not trades:
        return 0.0
    return sum(1 for t in trades if predicate(t)) / len(trades)
