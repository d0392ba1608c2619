"""Tests for drawdown over a closed-trade P&L path."""

import pytest

from journal_analytics.risk.drawdown import DrawdownStats, compute_drawdown


class TestComputeDrawdown:
    def test_reference_path(self):
        stats = compute_drawdown([100, -400, 150])
        assert stats.max_drawdown == 400
        assert stats.peak == 100
        assert stats.trough_index == 1
        assert stats.max_drawdown_pct == pytest.approx(400.0)

    def test_percentage_against_account(self):
        stats = compute_drawdown([100, -400, 150], account_size=10_000)
        assert stats.max_drawdown_pct == pytest.approx(4.0)

    def test_equity_starts_at_zero(self):
        stats = compute_drawdown([-100, -50])
        assert stats.max_drawdown == 150
        assert stats.max_drawdown_pct == 0.0  # peak never rose above zero

    def test_monotonic_gains(self):
        stats = compute_drawdown([10, 20, 30])
        assert stats.max_drawdown == 0
        assert stats.peak == 60
        assert stats.trough_index == -1

    def test_empty(self):
        assert compute_drawdown([]) == DrawdownStats()

    def test_recovery_does_not_reset_max(self):
        stats = compute_drawdown([200, -100, 300, -50])
        assert stats.max_drawdown == 100
        assert stats.max_drawdown_pct == pytest.approx(50.0)
