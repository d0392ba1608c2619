"""Emotional state calculator: trading-psychology scorecard.

Scores five positive traits (discipline, patience, emotional control,
risk awareness, confidence) and four negative emotions (fear, greed,
revenge, overconfidence) from the trades of the last 30 days.  The
positive traits roll up into a weighted ``overall`` score that maps to a
status band and a fixed recommendation.

Positive traits start at 100 and lose points in proportion to how often
a behaviour shows up; negative emotions start at 0 and accumulate.  All
scores are clamped to [0, 100].

Usage::

    calc = EmotionalStateCalculator()
    state = calc.calculate(trades, as_of=datetime(2024, 6, 1, tzinfo=timezone.utc))
    print(state.overall, state.status)  # 72 good
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from journal_analytics.core.clock import IClock, WallClock, ensure_utc
from journal_analytics.core.config import EmotionalConfig, MarketConfig
from journal_analytics.core.enums import DISTRESS_TAGS, EmotionalStatus, TradeTag
from journal_analytics.core.models import AnalyzableTrade, EmotionalState

from .sequences import (
    fraction,
    losing_streaks,
    mean,
    pstdev,
    quick_entries_after_loss,
    trades_per_day,
    winning_streaks,
)

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30

# Weights of the positive traits in the overall score
WEIGHTS = {
    "discipline": 0.25,
    "patience": 0.20,
    "emotional_control": 0.25,
    "risk_awareness": 0.15,
    "confidence": 0.15,
}

INSUFFICIENT_DATA_INSIGHT = (
    "Not enough recent trades to assess your emotional state."
)
INSUFFICIENT_DATA_RECOMMENDATION = (
    "Not enough data to analyze emotional state. Keep trading to generate insights."
)
POSITIVE_INSIGHT = "Your emotional control is good. Keep maintaining discipline!"

RECOMMENDATIONS = {
    EmotionalStatus.EXCELLENT: (
        "Your emotional state is excellent! Continue with your current approach."
    ),
    EmotionalStatus.GOOD: "Your trading psychology is healthy. Keep up the good work.",
    EmotionalStatus.NEUTRAL: (
        "Your emotional state is neutral. Focus on the areas highlighted in insights."
    ),
    EmotionalStatus.WARNING: (
        "Your emotional state needs attention. Consider taking a break "
        "and reviewing your trading plan."
    ),
    EmotionalStatus.CRITICAL: (
        "CRITICAL: Take a break from trading immediately. "
        "Your emotional state is affecting your performance."
    ),
}

RiskRewardProvider = Callable[[Sequence[AnalyzableTrade]], float]


def constant_risk_reward(value: float) -> RiskRewardProvider:
    """Provider returning a fixed average risk-reward ratio.

    Raw trade rows carry no planned stop/target, so callers that track
    them should pass their own provider.
    """
    def _provider(trades: Sequence[AnalyzableTrade]) -> float:
        return value

    return _provider


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def determine_status(overall: float) -> EmotionalStatus:
    if overall >= 80:
        return EmotionalStatus.EXCELLENT
    if overall >= 60:
        return EmotionalStatus.GOOD
    if overall >= 40:
        return EmotionalStatus.NEUTRAL
    if overall >= 20:
        return EmotionalStatus.WARNING
    return EmotionalStatus.CRITICAL


def default_state(as_of: datetime | None = None) -> EmotionalState:
    """Neutral state returned when there is nothing to judge."""
    return EmotionalState(
        overall=50,
        discipline=50.0,
        patience=50.0,
        emotional_control=50.0,
        risk_awareness=50.0,
        confidence=50.0,
        fear=0.0,
        greed=0.0,
        revenge=0.0,
        overconfidence=0.0,
        status=EmotionalStatus.NEUTRAL,
        insights=[INSUFFICIENT_DATA_INSIGHT],
        recommendation=INSUFFICIENT_DATA_RECOMMENDATION,
        trades_analyzed=0,
        as_of=as_of,
    )


class EmotionalStateCalculator:
    """Compute an :class:`EmotionalState` from normalized trades.

    Parameters
    ----------
    config : EmotionalConfig | None
        Thresholds and penalty multipliers.
    market : MarketConfig | None
        Market timezone used for calendar-day bucketing.
    risk_reward : RiskRewardProvider | None
        Average risk-reward source for the risk-awareness trait.
        Defaults to the constant ``config.default_risk_reward``.
    clock : IClock | None
        Read once per call when ``as_of`` is not given.
    """

    def __init__(
        self,
        config: EmotionalConfig | None = None,
        market: MarketConfig | None = None,
        *,
        risk_reward: RiskRewardProvider | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._cfg = config or EmotionalConfig()
        self._tz = (market or MarketConfig()).tz
        self._risk_reward = risk_reward or constant_risk_reward(
            self._cfg.default_risk_reward
        )
        self._clock = clock or WallClock()

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def calculate(
        self,
        trades: Sequence[AnalyzableTrade] | None,
        as_of: datetime | None = None,
    ) -> EmotionalState:
        """Score the trades entered in the 30 days up to *as_of*."""
        as_of = ensure_utc(as_of) if as_of is not None else self._clock.now()
        if not trades:
            return default_state(as_of)

        recent = self.recent_trades(trades, as_of)
        if not recent:
            logger.debug("No trades inside the %d-day window ending %s", WINDOW_DAYS, as_of)
            return default_state(as_of)

        discipline = clamp(self.discipline(recent))
        patience = clamp(self.patience(recent))
        emotional_control = clamp(self.emotional_control(recent))
        risk_awareness = clamp(self.risk_awareness(recent))
        confidence = clamp(self.confidence(recent))

        fear = clamp(self.fear(recent))
        greed = clamp(self.greed(recent))
        revenge = clamp(self.revenge(recent))
        overconfidence = clamp(self.overconfidence(recent))

        weighted = (
            discipline * WEIGHTS["discipline"]
            + patience * WEIGHTS["patience"]
            + emotional_control * WEIGHTS["emotional_control"]
            + risk_awareness * WEIGHTS["risk_awareness"]
            + confidence * WEIGHTS["confidence"]
        )
        overall = int(clamp(round_half_up(weighted)))
        status = determine_status(overall)

        insights = self.insights(
            discipline=discipline,
            patience=patience,
            fear=fear,
            greed=greed,
            revenge=revenge,
        )

        logger.debug(
            "Emotional state: overall=%d status=%s over %d trades",
            overall,
            status.value,
            len(recent),
        )
        return EmotionalState(
            overall=overall,
            discipline=round(discipline, 2),
            patience=round(patience, 2),
            emotional_control=round(emotional_control, 2),
            risk_awareness=round(risk_awareness, 2),
            confidence=round(confidence, 2),
            fear=round(fear, 2),
            greed=round(greed, 2),
            revenge=round(revenge, 2),
            overconfidence=round(overconfidence, 2),
            status=status,
            insights=insights,
            recommendation=RECOMMENDATIONS[status],
            trades_analyzed=len(recent),
            as_of=as_of,
        )

    @staticmethod
    def recent_trades(
        trades: Sequence[AnalyzableTrade], as_of: datetime
    ) -> list[AnalyzableTrade]:
        """Trades entered in ``[as_of - 30 days, as_of]``, time-sorted."""
        cutoff = as_of - timedelta(days=WINDOW_DAYS)
        window = [t for t in trades if cutoff <= t.entry_time <= as_of]
        window.sort(key=lambda t: t.entry_time)
        return window

    # ------------------------------------------------------------------ #
    # Positive traits                                                      #
    # ------------------------------------------------------------------ #

    def discipline(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        score = 100.0

        per_day = trades_per_day(trades, self._tz)
        overtrading_days = sum(1 for n in per_day.values() if n > cfg.overtrading_day_limit)
        score -= overtrading_days * cfg.overtrading_day_penalty

        score -= fraction(trades, lambda t: t.has_tag(TradeTag.NO_STOP_LOSS)) * 20
        score -= fraction(trades, lambda t: t.has_tag(TradeTag.STRATEGY_VIOLATION)) * 30
        return score

    def patience(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        score = 100.0

        quick = quick_entries_after_loss(trades, cfg.quick_trade_minutes)
        score -= len(quick) / len(trades) * 50

        holds = [t.holding_minutes for t in trades if t.has_exit]
        if holds and mean(holds) > cfg.patience_bonus_minutes:
            score += 10
        return score

    def emotional_control(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        score = 100.0

        score -= fraction(trades, lambda t: t.has_tag(*DISTRESS_TAGS)) * 40

        avg_size = mean([t.size for t in trades])
        oversized = 0
        for streak in losing_streaks(trades):
            oversized += sum(
                1
                for t in trades[streak.start:streak.end + 1]
                if t.size > avg_size * cfg.oversize_multiplier
            )
        score -= oversized / len(trades) * 30
        return score

    def risk_awareness(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        score = 100.0

        rr = self._risk_reward(trades)
        if not math.isfinite(rr) or rr < cfg.risk_reward_floor:
            score -= 20

        sizes = [t.size for t in trades]
        avg_size = mean(sizes)
        if avg_size > 0 and pstdev(sizes) / avg_size > cfg.size_cv_limit:
            score -= 25

        score -= fraction(trades, lambda t: not t.has_tag(TradeTag.STOP_LOSS_USED)) * 30
        return score

    def confidence(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        recent_rate = win_rate_pct(trades[-cfg.recent_trade_count:])
        overall_rate = win_rate_pct(trades)

        score = recent_rate
        if recent_rate > overall_rate + cfg.confidence_band:
            score += 10
        elif recent_rate < overall_rate - cfg.confidence_band:
            score -= 10

        score += consistency([t.pnl for t in trades]) * 0.2
        return score

    # ------------------------------------------------------------------ #
    # Negative emotions                                                    #
    # ------------------------------------------------------------------ #

    def fear(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        avg_size = mean([t.size for t in trades])

        fear = fraction(trades, lambda t: t.size < avg_size * cfg.fear_size_multiplier) * 30
        fear += fraction(
            trades,
            lambda t: t.has_exit and t.holding_minutes < cfg.early_exit_minutes and t.pnl > 0,
        ) * 40
        fear += fraction(trades, lambda t: t.has_tag(TradeTag.FEAR)) * 30
        return fear

    def greed(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        avg_size = mean([t.size for t in trades])

        greed = fraction(trades, lambda t: t.size > avg_size * cfg.greed_size_multiplier) * 40
        greed += fraction(trades, lambda t: t.has_tag(TradeTag.GAVE_BACK_PROFITS)) * 30
        greed += fraction(trades, lambda t: t.has_tag(TradeTag.GREED)) * 30
        return greed

    def revenge(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        score = 0.0
        for i in quick_entries_after_loss(trades, cfg.quick_trade_minutes):
            score += 1.0
            if trades[i].size > trades[i - 1].size:
                score += 0.5

        revenge = score / len(trades) * 100
        revenge += fraction(trades, lambda t: t.has_tag(TradeTag.REVENGE)) * 50
        return revenge

    def overconfidence(self, trades: Sequence[AnalyzableTrade]) -> float:
        cfg = self._cfg
        avg_size = mean([t.size for t in trades])
        streaks = winning_streaks(trades)

        oversized_after = 0
        for streak in streaks:
            if streak.length < cfg.streak_length:
                continue
            nxt = streak.end + 1
            if nxt < len(trades) and trades[nxt].size > avg_size * cfg.oversize_multiplier:
                oversized_after += 1

        score = oversized_after / max(1, len(streaks)) * 50
        score += fraction(trades, lambda t: t.has_tag(TradeTag.OVERCONFIDENT)) * 50
        return score

    # ------------------------------------------------------------------ #
    # Insights                                                             #
    # ------------------------------------------------------------------ #

    @staticmethod
    def insights(
        *,
        discipline: float,
        patience: float,
        fear: float,
        greed: float,
        revenge: float,
    ) -> list[str]:
        messages: list[str] = []
        if revenge > 60:
            messages.append(
                f"High revenge trading detected ({revenge:.0f}%). "
                "Wait at least 1 hour after a loss before trading again."
            )
        if discipline < 50:
            messages.append(
                f"Discipline score is low ({discipline:.0f}%). "
                "Focus on following your trading plan consistently."
            )
        if greed > 50:
            messages.append(
                f"Greed levels elevated ({greed:.0f}%). Stick to your position sizing rules."
            )
        if fear > 50:
            messages.append(
                f"Fear detected ({fear:.0f}%). Trust your strategy and "
                "don't exit profitable trades too early."
            )
        if patience < 40:
            messages.append(
                "Patience needs improvement. Quality over quantity - "
                "wait for high-probability setups."
            )
        if not messages:
            messages.append(POSITIVE_INSIGHT)
        return messages


def win_rate_pct(trades: Sequence[AnalyzableTrade]) -> float:
    if not trades:
        return 0.0
    return sum(1 for t in trades if t.is_win) / len(trades) * 100


def consistency(pnls: Sequence[float]) -> float:
    """``max(0, 100 - 50 * |stdev / mean|)``; 0 when the mean is 0."""
    mu = mean(pnls)
    if mu == 0:
        return 0.0
    cv = abs(pstdev(pnls) / mu)
    return max(0.0, 100 - cv * 50)
