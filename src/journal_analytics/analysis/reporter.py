"""Aggregation reporter: one call from raw journal rows to a full report.

Normalizes the rows once, then runs the emotional calculator, the
pattern detector and the risk engine over the same trade list, and
turns their results into coaching insights.  The three analysers are
independent; only ``as_of`` is shared, and it is
read from the clock exactly once per report so every part of the
report describes the same instant.

Usage::

    engine = AnalyticsEngine(load_settings("configs/analytics.toml"))
    report = engine.analyze(rows, account_size=500_000)
    print(report.summary())
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from journal_analytics.core.clock import IClock, WallClock, ensure_utc
from journal_analytics.core.config import Settings
from journal_analytics.core.models import AnalysisReport, AnalyzableTrade
from journal_analytics.journal.coach import TradingCoach
from journal_analytics.journal.emotional import EmotionalStateCalculator, RiskRewardProvider
from journal_analytics.journal.normalizer import normalize_trades
from journal_analytics.journal.patterns import PatternDetector
from journal_analytics.observability import get_logger, run_context
from journal_analytics.risk.metrics import RiskMetricsEngine

logger = get_logger(__name__)

RawTrades = Iterable[Mapping[str, Any] | AnalyzableTrade] | None


class AnalyticsEngine:
    """Wire the three analysers together under one :class:`Settings`.

    Parameters
    ----------
    settings : Settings | None
        Component configs.  Defaults are used when omitted.
    clock : IClock | None
        Source of ``as_of`` when a call does not pass one.
    risk_reward : RiskRewardProvider | None
        Forwarded to :class:`EmotionalStateCalculator`.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: IClock | None = None,
        risk_reward: RiskRewardProvider | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._clock = clock or WallClock()
        market = self._settings.market
        self.emotional = EmotionalStateCalculator(
            self._settings.emotional, market, risk_reward=risk_reward, clock=self._clock
        )
        self.patterns = PatternDetector(self._settings.patterns, market)
        self.risk = RiskMetricsEngine(self._settings.risk, market)
        self.coach = TradingCoach(self._settings.coach, market)

    @property
    def settings(self) -> Settings:
        return self._settings

    def analyze(
        self,
        raw_trades: RawTrades,
        *,
        as_of: datetime | None = None,
        account_size: float | None = None,
        reference_entry: float | None = None,
        reference_stop: float | None = None,
    ) -> AnalysisReport:
        """Produce an :class:`AnalysisReport` for *raw_trades*.

        Never raises on malformed data: bad fields degrade to zero and
        undatable rows are dropped by the normalizer.
        """
        with run_context():
            as_of = ensure_utc(as_of) if as_of is not None else self._clock.now()
            trades = normalize_trades(raw_trades)

            state = self.emotional.calculate(trades, as_of)
            patterns = self.patterns.detect(trades)
            metrics = self.risk.compute(
                trades,
                account_size=account_size,
                reference_entry=reference_entry,
                reference_stop=reference_stop,
            )
            coaching = self.coach.advise(trades, patterns, metrics)

            report = AnalysisReport(
                emotional_state=state,
                patterns=patterns,
                risk_metrics=metrics,
                coaching=coaching,
                trades_analyzed=len(trades),
                as_of=as_of,
            )
            logger.info(
                "analysis_complete",
                trades=len(trades),
                overall=state.overall,
                status=state.status.value,
                pattern_types=len(patterns),
                insights=len(coaching),
                net_profit=round(metrics.net_profit, 2),
            )
        return report


def analyze_trades(
    raw_trades: RawTrades,
    *,
    settings: Settings | None = None,
    as_of: datetime | None = None,
    account_size: float | None = None,
    reference_entry: float | None = None,
    reference_stop: float | None = None,
) -> AnalysisReport:
    """Convenience wrapper: build an :class:`AnalyticsEngine` and analyze once."""
    return AnalyticsEngine(settings).analyze(
        raw_trades,
        as_of=as_of,
        account_size=account_size,
        reference_entry=reference_entry,
        reference_stop=reference_stop,
    )
