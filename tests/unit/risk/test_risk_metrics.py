"""Tests for RiskMetricsEngine and the metric functions behind it."""

import math
from datetime import datetime, timezone

import pytest

from journal_analytics.core.config import MarketConfig, RiskConfig
from journal_analytics.core.models import RiskMetrics
from journal_analytics.risk.metrics import (
    RiskMetricsEngine,
    calmar_ratio,
    daily_returns,
    max_consecutive,
    recovery_factor,
    sharpe_ratio,
    sortino_ratio,
)

from factories import make_series, make_trade


@pytest.fixture
def engine(utc_market):
    return RiskMetricsEngine(market=utc_market)


class TestMetricFunctions:
    def test_sharpe(self):
        assert sharpe_ratio([1, 3]) == pytest.approx(2.0)

    @pytest.mark.parametrize("returns", [[], [5], [7, 7, 7]])
    def test_sharpe_zero_stdev(self, returns):
        assert sharpe_ratio(returns) == 0.0

    def test_sortino(self):
        ratio, capped = sortino_ratio([10, -5, -15])
        assert ratio == pytest.approx((-10 / 3) / 5)
        assert not capped

    def test_sortino_capped(self):
        ratio, capped = sortino_ratio([100] * 20 + [-1, -2])
        assert ratio == 10.0
        assert capped

    @pytest.mark.parametrize("returns", [[], [10, 20], [10, -5]])
    def test_sortino_zero_downside_deviation(self, returns):
        assert sortino_ratio(returns) == (0.0, False)

    def test_calmar(self):
        assert calmar_ratio(730, 100, 365) == pytest.approx(7.3)
        assert calmar_ratio(10, 5, 0) == pytest.approx(730.0)  # span floor of one day
        assert calmar_ratio(100, 0, 10) == 0.0

    def test_recovery_factor(self):
        assert recovery_factor(300, 100) == pytest.approx(3.0)
        assert recovery_factor(300, 0) == 0.0

    @pytest.mark.parametrize(
        "pnls, expected",
        [
            ([], (0, 0)),
            ([1, 1, -1, -1, -1, 0, 1], (2, 3)),
            ([1, 0, 1], (1, 0)),
            ([-1, 0, -1, -1], (0, 2)),
        ],
    )
    def test_max_consecutive(self, pnls, expected):
        assert max_consecutive(pnls) == expected

    def test_daily_returns_follow_market_calendar(self):
        trades = [
            make_trade("a", 10, entry=datetime(2024, 3, 4, 18, 0, tzinfo=timezone.utc)),
            make_trade("b", 5, entry=datetime(2024, 3, 4, 20, 0, tzinfo=timezone.utc)),
        ]
        assert daily_returns(trades, MarketConfig(timezone="UTC")) == [15.0]
        # 20:00 UTC is already the next day in Mumbai
        assert daily_returns(trades, MarketConfig()) == [10.0, 5.0]


class TestEngine:
    def test_empty(self, engine):
        assert engine.compute([]) == RiskMetrics()
        assert engine.compute(None) == RiskMetrics()

    def test_drawdown_reference_path(self, engine):
        metrics = engine.compute(make_series([100, -400, 150]))
        assert metrics.max_drawdown == 400
        assert metrics.max_drawdown_pct == pytest.approx(400.0)
        assert metrics.net_profit == -150
        assert metrics.max_consecutive_wins == 1
        assert metrics.max_consecutive_losses == 1

    def test_drawdown_pct_with_account(self, engine):
        metrics = engine.compute(make_series([100, -400, 150]), account_size=10_000)
        assert metrics.max_drawdown_pct == pytest.approx(4.0)

    def test_trade_statistics(self, engine):
        metrics = engine.compute(make_series([300, -100, 200, -100]))
        assert metrics.total_trades == 4
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.avg_win == pytest.approx(250.0)
        assert metrics.avg_loss == pytest.approx(100.0)
        assert metrics.profit_factor == pytest.approx(2.5)
        assert metrics.expectancy == pytest.approx(75.0)
        assert metrics.kelly_fraction == pytest.approx(0.3)

    def test_profit_factor_without_losses(self, engine):
        assert engine.compute(make_series([100, 50])).profit_factor == 999.0

    def test_all_breakeven(self, engine):
        metrics = engine.compute(make_series([0, 0]))
        assert metrics.profit_factor == 0.0
        assert metrics.win_rate == 0.0
        assert metrics.kelly_fraction == 0.0
        assert metrics.risk_of_ruin_pct == 0.0

    def test_calmar_and_recovery(self, engine):
        # Two days from first to last entry, net 150, drawdown 50
        metrics = engine.compute(make_series([100, -50, 100]))
        assert metrics.recovery_factor == pytest.approx(3.0)
        assert metrics.calmar_ratio == pytest.approx(150 / 2 * 365 / 50)

    def test_tail_risk_on_daily_pnl(self, engine):
        metrics = engine.compute(make_series([-100, -50, 0, 50, 100]))
        assert metrics.var_95 == pytest.approx(-90.0)
        assert metrics.expected_shortfall_95 == pytest.approx(-100.0)

    def test_sortino_cap_flag(self, engine):
        metrics = engine.compute(make_series([100] * 20 + [-1, -2]))
        assert metrics.sortino_ratio == 10.0
        assert metrics.sortino_capped

    def test_recommended_position_size(self, engine):
        trades = make_series([100, -50])
        sized = engine.compute(
            trades, account_size=100_000, reference_entry=100.0, reference_stop=95.0
        )
        assert sized.recommended_position_size == pytest.approx(400.0)

        unsized = engine.compute(trades, reference_entry=100.0, reference_stop=95.0)
        assert unsized.recommended_position_size == 0.0

    def test_account_size_from_config(self, utc_market):
        engine = RiskMetricsEngine(RiskConfig(account_size=10_000), utc_market)
        assert engine.compute(make_series([100, -400])).max_drawdown_pct == pytest.approx(4.0)

    def test_input_order_does_not_matter(self, engine):
        trades = make_series([100, -400, 150, -20, 60])
        assert engine.compute(list(reversed(trades))) == engine.compute(trades)

    @pytest.mark.parametrize(
        "pnls",
        [
            [1e9, -1e9, 1e-9, 0, -3],
            [1.7e308, 1.7e308, -1.7e308, -1.7e308],
        ],
    )
    def test_every_field_finite(self, engine, pnls):
        metrics = engine.compute(make_series(pnls))
        for name, value in metrics.model_dump().items():
            if isinstance(value, float):
                assert math.isfinite(value), name
