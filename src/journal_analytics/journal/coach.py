"""Coaching insights from detected patterns and performance.

Turns the pattern catalogue and the risk metrics of one analysis into a
short list of titled messages, each with a severity and a concrete
action:

- Revenge trading seen at least twice (with what it cost)
- Overtrading on two or more market days
- FOMO entries making up 30%+ of trades
- Low win rate, negative average trade, strong win rate
- A positive note when nothing is flagged and the journal is profitable

At most three insights are returned, in the order above.  Journals with
fewer than five trades get none.

Usage::

    coach = TradingCoach()
    for insight in coach.advise(trades, patterns, metrics):
        print(insight.severity.value, insight.title)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from journal_analytics.core.config import CoachConfig, MarketConfig
from journal_analytics.core.enums import InsightSeverity, PatternType
from journal_analytics.core.models import (
    AnalyzableTrade,
    CoachInsight,
    DetectedPattern,
    RiskMetrics,
)

from .sequences import local_day

logger = logging.getLogger(__name__)


class TradingCoach:
    """Generate :class:`CoachInsight` messages for one analysis run.

    Parameters
    ----------
    config : CoachConfig | None
        Trigger thresholds and the currency symbol used in messages.
    market : MarketConfig | None
        Market timezone used to count overtrading days.
    """

    def __init__(
        self,
        config: CoachConfig | None = None,
        market: MarketConfig | None = None,
    ) -> None:
        self._cfg = config or CoachConfig()
        self._tz = (market or MarketConfig()).tz

    def advise(
        self,
        trades: Sequence[AnalyzableTrade] | None,
        patterns: Sequence[DetectedPattern],
        metrics: RiskMetrics,
    ) -> list[CoachInsight]:
        cfg = self._cfg
        if not trades or len(trades) < cfg.min_trades:
            return []

        n = len(trades)
        by_type = {p.type: p for p in patterns}
        win_rate = metrics.win_rate * 100
        avg_trade = metrics.net_profit / n
        insights: list[CoachInsight] = []

        revenge = by_type.get(PatternType.REVENGE_TRADING)
        if revenge is not None and revenge.occurrences >= cfg.revenge_min_occurrences:
            insights.append(CoachInsight(
                title="Revenge Trading Detected",
                message=(
                    f"You've taken {revenge.occurrences} trades shortly after a loss, "
                    f"costing {self._money(revenge.total_cost)}. This emotional "
                    "response often leads to bigger losses."
                ),
                severity=InsightSeverity.WARNING,
                action="Take a 15-minute break after any loss before trading again.",
            ))

        overtrading = by_type.get(PatternType.OVERTRADING)
        days = self._days(trades, overtrading) if overtrading is not None else 0
        if days >= cfg.overtrading_min_days:
            insights.append(CoachInsight(
                title="Overtrading Alert",
                message=(
                    f"You went over your daily trade limit on {days} days. "
                    "Quality over quantity - focus on your best setups only."
                ),
                severity=InsightSeverity.WARNING,
                action="Set a daily limit of 3-5 trades and stick to it.",
            ))

        fomo = by_type.get(PatternType.FOMO)
        if fomo is not None and fomo.occurrences >= n * cfg.fomo_min_share:
            insights.append(CoachInsight(
                title="FOMO Pattern Detected",
                message=(
                    f"{round(fomo.occurrences / n * 100)}% of your trades are during "
                    "high-volatility hours. These often lack proper setup confirmation."
                ),
                severity=InsightSeverity.INFO,
                action="Wait for your planned setup confirmation before entering trades.",
            ))

        if n >= cfg.performance_min_trades:
            if win_rate < cfg.low_win_rate_pct:
                insights.append(CoachInsight(
                    title="Low Win Rate",
                    message=(
                        f"Your win rate is {win_rate:.1f}%. Focus on improving entry "
                        "quality and following your trading plan more strictly."
                    ),
                    severity=InsightSeverity.WARNING,
                    action="Review your losing trades and identify common mistakes.",
                ))
            if avg_trade < 0:
                insights.append(CoachInsight(
                    title="Negative Average Trade",
                    message=(
                        f"Your average trade is losing {self._money(avg_trade)}. "
                        "Consider tightening stop losses or improving entry timing."
                    ),
                    severity=InsightSeverity.CRITICAL,
                    action="Analyze your risk-reward ratio and ensure it's at least 1:2.",
                ))
            if win_rate >= cfg.strong_win_rate_pct:
                insights.append(CoachInsight(
                    title="Strong Win Rate",
                    message=(
                        f"Excellent! Your win rate is {win_rate:.1f}%. Keep following "
                        "your plan and maintain discipline."
                    ),
                    severity=InsightSeverity.SUCCESS,
                    action="Continue with your current strategy while managing risk.",
                ))

        if not insights and win_rate >= 50 and metrics.net_profit > 0:
            insights.append(CoachInsight(
                title="Keep Up the Good Work",
                message=(
                    f"You're maintaining a {win_rate:.1f}% win rate with positive P&L. "
                    "Stay disciplined and stick to your plan."
                ),
                severity=InsightSeverity.SUCCESS,
                action="Continue tracking your trades and reviewing your journal entries.",
            ))

        logger.debug("Coaching: %s", [i.title for i in insights])
        return insights[:cfg.max_insights]

    def _days(self, trades: Sequence[AnalyzableTrade], pattern: DetectedPattern) -> int:
        """Distinct market days among the pattern's trades."""
        return len({
            local_day(t.entry_time, self._tz)
            for t in trades
            if t.id in pattern.affected_trade_ids
        })

    def _money(self, amount: float) -> str:
        return f"{self._cfg.currency_symbol}{abs(amount):,.0f}"
