"""Tests for TradingCoach: each insight trigger, ordering and limits."""

import pytest

from journal_analytics.core.config import CoachConfig
from journal_analytics.core.enums import InsightSeverity, PatternType
from journal_analytics.core.models import DetectedPattern, RiskMetrics
from journal_analytics.journal.coach import TradingCoach

from factories import make_series


@pytest.fixture
def coach(utc_market):
    return TradingCoach(market=utc_market)


def titles(insights):
    return [i.title for i in insights]


def pattern(ptype, occurrences, cost=0.0, ids=()):
    return DetectedPattern(
        type=ptype,
        occurrences=occurrences,
        total_cost=cost,
        affected_trade_ids=frozenset(ids),
    )


NEUTRAL = RiskMetrics(win_rate=0.5, net_profit=0.0)


class TestMinimumHistory:
    def test_too_few_trades(self, coach):
        trades = make_series([100] * 4)
        strong = RiskMetrics(win_rate=1.0, net_profit=400)
        assert coach.advise(trades, [], strong) == []

    def test_no_trades(self, coach):
        assert coach.advise([], [], RiskMetrics()) == []
        assert coach.advise(None, [], RiskMetrics()) == []


class TestPatternInsights:
    def test_revenge_with_cost(self, coach):
        trades = make_series([10] * 5)
        revenge = pattern(PatternType.REVENGE_TRADING, 2, -1500, {"t1", "t3"})
        (insight,) = coach.advise(trades, [revenge], NEUTRAL)
        assert insight.title == "Revenge Trading Detected"
        assert insight.severity == InsightSeverity.WARNING
        assert "2 trades" in insight.message
        assert "₹1,500" in insight.message
        assert insight.action

    def test_single_revenge_trade_is_quiet(self, coach):
        trades = make_series([10] * 5)
        revenge = pattern(PatternType.REVENGE_TRADING, 1, -200, {"t1"})
        assert coach.advise(trades, [revenge], NEUTRAL) == []

    def test_overtrading_counts_days(self, coach):
        trades = make_series([10] * 5)  # one trade per day
        busy = pattern(PatternType.OVERTRADING, 2, 20, {"t0", "t1"})
        (insight,) = coach.advise(trades, [busy], NEUTRAL)
        assert insight.title == "Overtrading Alert"
        assert "2 days" in insight.message

    def test_overtrading_on_one_day_is_quiet(self, coach):
        trades = make_series([10] * 5)
        busy = pattern(PatternType.OVERTRADING, 6, 60, {"t0"})
        assert coach.advise(trades, [busy], NEUTRAL) == []

    def test_fomo_share(self, coach):
        trades = make_series([10] * 5)
        fomo = pattern(PatternType.FOMO, 2, 20, {"t0", "t1"})
        (insight,) = coach.advise(trades, [fomo], NEUTRAL)
        assert insight.title == "FOMO Pattern Detected"
        assert insight.severity == InsightSeverity.INFO
        assert insight.message.startswith("40%")

    def test_occasional_fomo_is_quiet(self, coach):
        trades = make_series([10] * 5)
        fomo = pattern(PatternType.FOMO, 1, 10, {"t0"})
        assert coach.advise(trades, [fomo], NEUTRAL) == []


class TestPerformanceInsights:
    def test_low_win_rate_and_negative_average(self, coach):
        trades = make_series([-50] * 10)
        metrics = RiskMetrics(win_rate=0.3, net_profit=-500)
        insights = coach.advise(trades, [], metrics)
        assert titles(insights) == ["Low Win Rate", "Negative Average Trade"]
        assert "30.0%" in insights[0].message
        assert insights[1].severity == InsightSeverity.CRITICAL
        assert "₹50" in insights[1].message

    def test_strong_win_rate(self, coach):
        trades = make_series([50] * 10)
        (insight,) = coach.advise(trades, [], RiskMetrics(win_rate=0.7, net_profit=500))
        assert insight.title == "Strong Win Rate"
        assert insight.severity == InsightSeverity.SUCCESS

    def test_performance_needs_ten_trades(self, coach):
        trades = make_series([-50] * 9)
        assert coach.advise(trades, [], RiskMetrics(win_rate=0.3, net_profit=-450)) == []


class TestDefaultAndLimits:
    def test_positive_note_when_nothing_flagged(self, coach):
        trades = make_series([10] * 5)
        (insight,) = coach.advise(trades, [], RiskMetrics(win_rate=0.6, net_profit=100))
        assert insight.title == "Keep Up the Good Work"
        assert "60.0%" in insight.message

    def test_no_positive_note_for_losing_journal(self, coach):
        trades = make_series([10] * 5)
        assert coach.advise(trades, [], RiskMetrics(win_rate=0.6, net_profit=-100)) == []

    def test_at_most_three_in_trigger_order(self, coach):
        trades = make_series([-10] * 10)
        patterns = [
            pattern(PatternType.REVENGE_TRADING, 3, -300, {"t1", "t2", "t3"}),
            pattern(PatternType.OVERTRADING, 6, -60, {"t4", "t5"}),
            pattern(PatternType.FOMO, 4, -40, {"t0", "t6", "t7", "t8"}),
        ]
        insights = coach.advise(trades, patterns, RiskMetrics(win_rate=0.0, net_profit=-100))
        assert titles(insights) == [
            "Revenge Trading Detected",
            "Overtrading Alert",
            "FOMO Pattern Detected",
        ]

    def test_config_thresholds_and_currency(self, utc_market):
        coach = TradingCoach(
            CoachConfig(min_trades=2, revenge_min_occurrences=1, currency_symbol="$"),
            utc_market,
        )
        trades = make_series([-10, -20])
        revenge = pattern(PatternType.REVENGE_TRADING, 1, -20, {"t1"})
        (insight,) = coach.advise(trades, [revenge], NEUTRAL)
        assert "$20" in insight.message
