"""Tests for AnalyticsEngine: wiring, defaults and report export."""

import json
import math
from datetime import datetime

import pytest

from journal_analytics import AnalyticsEngine, analyze_trades
from journal_analytics.core.config import MarketConfig, PatternConfig, Settings
from journal_analytics.core.enums import PatternType
from journal_analytics.core.models import AnalysisReport, AnalyzableTrade, RiskMetrics
from journal_analytics.journal.emotional import default_state
from journal_analytics.journal.patterns import PatternRule
from journal_analytics.observability import get_run_id, set_run_id

from factories import ist


@pytest.fixture
def engine(fixed_clock):
    return AnalyticsEngine(Settings(), clock=fixed_clock)


def _rows():
    return [
        {
            "id": "a",
            "entryTime": ist(11, 20).isoformat(),
            "exitTime": ist(11, 25).isoformat(),
            "pnl": "-500",
            "quantity": 1,
            "tags": ["stop-loss-used"],
        },
        {
            "id": "b",
            "entryTime": ist(11, 40).isoformat(),
            "exitTime": ist(12, 10).isoformat(),
            "pnl": -800,
            "quantity": 2,
            "emotions": "angry, revenge",
        },
        {"id": "broken", "pnl": 10},
    ]


class TestAnalyze:
    def test_empty_input(self, engine, as_of):
        report = engine.analyze([])
        assert report.emotional_state == default_state(as_of)
        assert report.patterns == []
        assert report.risk_metrics == RiskMetrics()
        assert report.trades_analyzed == 0
        assert report.as_of == as_of

    def test_none_input(self, engine):
        assert engine.analyze(None).trades_analyzed == 0

    def test_components_share_trades(self, engine):
        report = engine.analyze(_rows())
        assert report.trades_analyzed == 2
        assert report.emotional_state.trades_analyzed == 2
        assert report.risk_metrics.total_trades == 2
        assert report.risk_metrics.max_consecutive_losses == 2
        types = {p.type for p in report.patterns}
        assert PatternType.REVENGE_TRADING in types

    def test_explicit_as_of_wins_over_clock(self, engine, as_of):
        later = as_of.replace(month=6)
        report = engine.analyze(_rows(), as_of=later)
        assert report.as_of == later
        assert report.emotional_state.trades_analyzed == 0  # outside the window
        assert report.risk_metrics.total_trades == 2

    def test_reference_prices_forwarded(self, engine):
        report = engine.analyze(
            _rows(), account_size=100_000, reference_entry=100.0, reference_stop=98.0
        )
        assert report.risk_metrics.recommended_position_size == pytest.approx(1000.0)

    def test_idempotent(self, engine):
        assert engine.analyze(_rows()) == engine.analyze(_rows())

    def test_fresh_run_id_per_report_and_restored_after(self, engine):
        seen = []

        def record_run_id(trade, ctx):
            seen.append(get_run_id())
            return False

        engine.patterns.register(PatternRule(PatternType.FOMO, record_run_id))
        set_run_id("caller")
        engine.analyze(_rows())
        engine.analyze(_rows())

        assert len(seen) == 4
        assert seen[0] == seen[1] != seen[2] == seen[3]
        assert "caller" not in seen
        assert get_run_id() == "caller"

    def test_hand_built_trades_are_sanitised(self, as_of):
        trades = [
            AnalyzableTrade(id="a", entry_time=ist(11, 20), pnl=-10, size=1),
            AnalyzableTrade(
                id="b", entry_time=ist(11, 30), pnl=math.nan, size=-5
            ),
        ]
        report = analyze_trades(trades, as_of=as_of)
        costs = {p.type: p.total_cost for p in report.patterns}
        assert costs[PatternType.REVENGE_TRADING] == 0.0
        assert report.risk_metrics.net_profit == -10
        json.dumps(report.to_dict(), allow_nan=False)

    def test_naive_model_mixed_with_rows(self, as_of):
        rows = [
            {"id": "x", "pnl": 5, "trade_date": "2024-03-08T09:20:00Z"},
            AnalyzableTrade(id="a", entry_time=datetime(2024, 3, 8, 9, 0), pnl=-10),
        ]
        report = analyze_trades(rows, as_of=as_of)
        assert report.trades_analyzed == 2
        assert report.risk_metrics.max_consecutive_losses == 1
        assert report.patterns[0].type == PatternType.REVENGE_TRADING

    def test_coaching_included(self, engine):
        rows = [
            {"id": f"r{i}", "entryTime": ist(12, 0, day=4 + i).isoformat(), "pnl": 100}
            for i in range(5)
        ]
        report = engine.analyze(rows)
        assert [c.title for c in report.coaching] == ["Keep Up the Good Work"]
        assert report.to_dict()["coaching"][0]["severity"] == "success"
        assert report.summary()["coaching"] == ["Keep Up the Good Work"]

    def test_settings_reach_components(self, fixed_clock):
        settings = Settings(patterns=PatternConfig(revenge_minutes=5))
        engine = AnalyticsEngine(settings, clock=fixed_clock)
        assert engine.settings.patterns.revenge_minutes == 5
        # b enters 15 minutes after a exits
        report = engine.analyze(_rows())
        assert PatternType.REVENGE_TRADING not in {p.type for p in report.patterns}

    def test_market_timezone_reaches_components(self, fixed_clock):
        utc = AnalyticsEngine(Settings(market=MarketConfig(timezone="UTC")), clock=fixed_clock)
        rows = [{"id": "x", "entryTime": "2024-03-04T10:30:00Z", "pnl": 5}]
        assert PatternType.FOMO in {p.type for p in utc.analyze(rows).patterns}
        assert PatternType.FOMO not in {p.type for p in AnalyticsEngine().analyze(rows).patterns}

    def test_module_level_wrapper(self, as_of):
        report = analyze_trades(_rows(), as_of=as_of)
        assert isinstance(report, AnalysisReport)
        assert report.trades_analyzed == 2


class TestReportExport:
    def test_to_dict_is_strict_json(self, engine):
        payload = engine.analyze(_rows()).to_dict()
        text = json.dumps(payload, allow_nan=False)
        assert '"status"' in text
        assert payload["patterns"][0]["affected_trade_ids"] == ["b"]

    def test_summary_marks_capped_sortino(self, as_of):
        report = AnalysisReport(
            emotional_state=default_state(as_of),
            risk_metrics=RiskMetrics(sortino_ratio=10.0, sortino_capped=True),
        )
        assert report.summary()["sortino"] == "10+"

    def test_summary_plain_sortino(self, as_of):
        report = AnalysisReport(
            emotional_state=default_state(as_of),
            risk_metrics=RiskMetrics(sortino_ratio=1.234),
        )
        summary = report.summary()
        assert summary["sortino"] == "1.23"
        assert summary["status"] == "neutral"
