"""Behavioral pattern detection and classification.

Scans a time-ordered trade sequence for named mistake-patterns:

- Revenge trading (entered shortly after a loss)
- Revenge sizing (sized up after a loss)
- Overtrading (too many trades on one market day)
- FOMO (unconfirmed entries in the high-volatility windows)
- Win-streak overconfidence (sized up after 3+ wins in a row)
- Loss aversion (small winners, losers held much longer)
- Weekend warrior (entries on non-trading days)
- News trader (entries in the first/last minutes of the session)

Each pattern is a :class:`PatternRule`, an independent predicate plus
a cost function held in a registry, so rules can be retuned or added
without touching the aggregation.  Patterns are not mutually exclusive;
one trade may match several.

Inspired by Edgewonk's structured mistake tracking: every behaviour is
counted and tied to its P&L so traders can quantify what it costs them.

Usage::

    detector = PatternDetector()
    patterns = detector.detect(trades)
    for p in patterns:
        print(p.type, p.occurrences, p.total_cost)

    # Combine runs (e.g. stored weekly detections)
    merged = merge_patterns(week_1, week_2)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from functools import cached_property
from typing import Any
from zoneinfo import ZoneInfo

from journal_analytics.core.config import MarketConfig, PatternConfig, parse_hhmm
from journal_analytics.core.enums import PatternType, TradeTag
from journal_analytics.core.models import AnalyzableTrade, DetectedPattern

from .normalizer import parse_number, parse_timestamp
from .sequences import (
    consecutive_wins_before,
    mean,
    minutes_after_prior_exit,
    trades_per_day,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule context
# ---------------------------------------------------------------------------

class PatternSequence:
    """Run-wide facts shared by every rule (computed once, lazily)."""

    def __init__(
        self,
        trades: Sequence[AnalyzableTrade],
        config: PatternConfig,
        market: MarketConfig,
    ) -> None:
        self.trades = trades
        self.config = config
        self.market = market
        self.tz: ZoneInfo = market.tz

    @cached_property
    def day_counts(self) -> dict[date, int]:
        return dict(trades_per_day(self.trades, self.tz))

    @cached_property
    def session_bounds(self) -> tuple[int, int]:
        return parse_hhmm(self.market.session_open), parse_hhmm(self.market.session_close)

    @cached_property
    def winner_mean_hold(self) -> float | None:
        """Mean holding minutes of winners with a real exit, if any."""
        holds = [t.holding_minutes for t in self.trades if t.is_win and t.has_exit]
        return mean(holds) if holds else None

    @cached_property
    def loss_aversion_active(self) -> bool:
        """Set-level gate: winners smaller than losers AND losers held longer."""
        wins = [t.pnl for t in self.trades if t.is_win]
        losses = [-t.pnl for t in self.trades if t.is_loss]
        if not wins or not losses or mean(wins) >= mean(losses):
            return False

        loser_holds = [t.holding_minutes for t in self.trades if t.is_loss and t.has_exit]
        winner_hold = self.winner_mean_hold
        if winner_hold is None or not loser_holds:
            return False
        return mean(loser_holds) > winner_hold * self.config.loss_aversion_hold_ratio

    def minute_of_day(self, ts: datetime) -> float:
        local = ts.astimezone(self.tz)
        return local.hour * 60 + local.minute + local.second / 60.0


@dataclass(frozen=True)
class TradeContext:
    """Position of one trade inside its :class:`PatternSequence`."""

    index: int
    sequence: PatternSequence

    @property
    def config(self) -> PatternConfig:
        return self.sequence.config

    @property
    def previous(self) -> AnalyzableTrade | None:
        if self.index == 0:
            return None
        return self.sequence.trades[self.index - 1]

    def preceding(self, n: int) -> Sequence[AnalyzableTrade]:
        """Up to *n* trades immediately before this one."""
        return self.sequence.trades[max(0, self.index - n):self.index]


Predicate = Callable[[AnalyzableTrade, TradeContext], bool]
CostFn = Callable[[AnalyzableTrade], float]


def pnl_cost(trade: AnalyzableTrade) -> float:
    return trade.pnl


@dataclass(frozen=True)
class PatternRule:
    """A named pattern: which trades match and what each one cost."""

    type: PatternType
    predicate: Predicate
    cost: CostFn = pnl_cost
    description: str = ""


# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------

def _revenge_trading(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    prev = ctx.previous
    return (
        prev is not None
        and prev.is_loss
        and minutes_after_prior_exit(prev, trade) < ctx.config.revenge_minutes
    )


def _revenge_sizing(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    prev = ctx.previous
    if prev is None or not prev.is_loss:
        return False
    trailing = mean([t.size for t in ctx.preceding(ctx.config.trailing_size_window)])
    return trailing > 0 and trade.size > trailing * ctx.config.revenge_size_multiplier


def _overtrading(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    seq = ctx.sequence
    day = trade.entry_time.astimezone(seq.tz).date()
    return seq.day_counts.get(day, 0) > ctx.config.overtrading_day_limit


def _fomo(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    if trade.has_tag(TradeTag.CONFIRMED):
        return False
    minute = ctx.sequence.minute_of_day(trade.entry_time)
    return any(w.contains(minute) for w in ctx.config.fomo_windows)


def _win_streak_overconfidence(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    cfg = ctx.config
    if consecutive_wins_before(ctx.sequence.trades, ctx.index) < cfg.win_streak_length:
        return False
    prev = ctx.previous
    return prev is not None and trade.size > prev.size * cfg.win_streak_size_multiplier


def _loss_aversion(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    seq = ctx.sequence
    if not (trade.is_loss and trade.has_exit and seq.loss_aversion_active):
        return False
    return trade.holding_minutes > (seq.winner_mean_hold or 0.0)


def _weekend_warrior(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    seq = ctx.sequence
    weekday = trade.entry_time.astimezone(seq.tz).isoweekday()
    return weekday not in seq.market.trading_days


def _news_trader(trade: AnalyzableTrade, ctx: TradeContext) -> bool:
    seq = ctx.sequence
    open_min, close_min = seq.session_bounds
    edge = ctx.config.session_edge_minutes
    minute = seq.minute_of_day(trade.entry_time)
    return open_min <= minute < open_min + edge or close_min - edge <= minute <= close_min


def default_rules() -> list[PatternRule]:
    return [
        PatternRule(
            PatternType.REVENGE_TRADING, _revenge_trading,
            description="Trade entered shortly after a losing trade",
        ),
        PatternRule(
            PatternType.REVENGE_SIZING, _revenge_sizing,
            description="Position size increased after a loss",
        ),
        PatternRule(
            PatternType.OVERTRADING, _overtrading,
            description="Too many trades on one market day",
        ),
        PatternRule(
            PatternType.FOMO, _fomo,
            description="Unconfirmed entry during a high-volatility window",
        ),
        PatternRule(
            PatternType.WIN_STREAK_OVERCONFIDENCE, _win_streak_overconfidence,
            description="Position size increased after a winning streak",
        ),
        PatternRule(
            PatternType.LOSS_AVERSION, _loss_aversion,
            description="Losers held far longer than winners",
        ),
        PatternRule(
            PatternType.WEEKEND_WARRIOR, _weekend_warrior,
            description="Trade on a non-trading day",
        ),
        PatternRule(
            PatternType.NEWS_TRADER, _news_trader,
            description="Entry in the first or last minutes of the session",
        ),
    ]


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------

class PatternDetector:
    """Run every registered rule over a trade sequence.

    Parameters
    ----------
    config : PatternConfig | None
        Rule thresholds.
    market : MarketConfig | None
        Timezone, session bounds and trading weekdays.
    rules : Iterable[PatternRule] | None
        Replaces the default rule set when given.
    """

    def __init__(
        self,
        config: PatternConfig | None = None,
        market: MarketConfig | None = None,
        *,
        rules: Iterable[PatternRule] | None = None,
    ) -> None:
        self._cfg = config or PatternConfig()
        self._market = market or MarketConfig()
        self._rules: list[PatternRule] = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> list[PatternRule]:
        return list(self._rules)

    def register(self, rule: PatternRule) -> None:
        """Add *rule*, replacing any registered rule of the same type."""
        self._rules = [r for r in self._rules if r.type != rule.type]
        self._rules.append(rule)

    def detect(self, trades: Sequence[AnalyzableTrade] | None) -> list[DetectedPattern]:
        """Return one :class:`DetectedPattern` per type with at least one match."""
        if not trades:
            return []

        ordered = sorted(trades, key=lambda t: t.entry_time)
        seq = PatternSequence(ordered, self._cfg, self._market)
        contexts = [TradeContext(i, seq) for i in range(len(ordered))]

        detected: list[DetectedPattern] = []
        for rule in self._rules:
            matches = [t for t, ctx in zip(ordered, contexts) if rule.predicate(t, ctx)]
            if not matches:
                continue
            detected.append(DetectedPattern(
                type=rule.type,
                occurrences=len(matches),
                total_cost=sum(rule.cost(t) for t in matches),
                first_detected=min(t.entry_time for t in matches),
                last_detected=max(t.entry_time for t in matches),
                affected_trade_ids=frozenset(t.id for t in matches),
                description=rule.description,
            ))

        detected.sort(key=lambda p: _TYPE_ORDER[p.type])
        logger.debug(
            "Detected %d pattern types over %d trades: %s",
            len(detected),
            len(ordered),
            {p.type.value: p.occurrences for p in detected},
        )
        return detected


# ---------------------------------------------------------------------------
# Aggregation across runs
# ---------------------------------------------------------------------------

_TYPE_ORDER = {t: i for i, t in enumerate(PatternType)}


def _earliest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _latest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def combine(a: DetectedPattern, b: DetectedPattern) -> DetectedPattern:
    """Merge two detections of the same pattern type."""
    if a.type != b.type:
        raise ValueError(f"Cannot combine {a.type.value} with {b.type.value}")
    return DetectedPattern(
        type=a.type,
        occurrences=a.occurrences + b.occurrences,
        total_cost=a.total_cost + b.total_cost,
        first_detected=_earliest(a.first_detected, b.first_detected),
        last_detected=_latest(a.last_detected, b.last_detected),
        affected_trade_ids=a.affected_trade_ids | b.affected_trade_ids,
        # Any non-empty description survives; max keeps the choice order-free
        description=max(a.description, b.description),
    )


def merge_patterns(*batches: Iterable[DetectedPattern]) -> list[DetectedPattern]:
    """Merge detection batches into one entry per pattern type.

    Sums occurrences and cost (in whole cents), takes min/max of the
    date bounds and unions the affected trade ids.  Associative and
    commutative; output is ordered by pattern type.
    """
    merged: dict[PatternType, DetectedPattern] = {}
    for batch in batches:
        for pattern in batch:
            existing = merged.get(pattern.type)
            merged[pattern.type] = pattern if existing is None else combine(existing, pattern)
    return sorted(merged.values(), key=lambda p: _TYPE_ORDER[p.type])


def merge_pattern_rows(rows: Iterable[Mapping[str, Any]]) -> list[DetectedPattern]:
    """Aggregate persisted detection rows into merged patterns.

    Each row needs ``pattern_type``; ``occurrences`` defaults to 1,
    ``total_cost`` and ``detected_at`` are parsed defensively and
    ``trades_affected`` is a list of trade ids.
    """
    patterns: list[DetectedPattern] = []
    for row in rows:
        try:
            ptype = PatternType(row.get("pattern_type"))
        except ValueError:
            logger.warning("Skipping detection row with unknown pattern_type %r", row.get("pattern_type"))
            continue
        raw_occurrences = row.get("occurrences")
        occurrences = 1 if raw_occurrences is None else int(parse_number(raw_occurrences))
        detected_at = parse_timestamp(row.get("detected_at"))
        trade_ids = row.get("trades_affected") or []
        if isinstance(trade_ids, str):
            trade_ids = [tid.strip() for tid in trade_ids.split(",") if tid.strip()]
        patterns.append(DetectedPattern(
            type=ptype,
            occurrences=max(0, occurrences),
            total_cost=parse_number(row.get("total_cost")),
            first_detected=detected_at,
            last_detected=detected_at,
            affected_trade_ids=frozenset(str(tid) for tid in trade_ids),
            description=str(row.get("description") or ""),
        ))
    return merge_patterns(patterns)
