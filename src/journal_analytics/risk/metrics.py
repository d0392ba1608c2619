"""Risk metrics engine.

Computes drawdown, risk-adjusted return ratios, streaks, Kelly sizing,
tail risk and risk of ruin from a time-ordered trade sequence.  Ratio
metrics (Sharpe, Sortino, VaR) run on daily P&L: trades bucketed by
market-calendar day and summed.

Every metric has an explicit zero branch for a zero denominator, and
the engine never emits NaN or infinity.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import date

import numpy as np

from journal_analytics.core.config import MarketConfig, RiskConfig
from journal_analytics.core.models import AnalyzableTrade, RiskMetrics

from .drawdown import compute_drawdown
from .sizing import kelly_fraction, position_size, risk_of_ruin
from .var_es import TailRisk

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric functions
# ---------------------------------------------------------------------------

def daily_returns(trades: Sequence[AnalyzableTrade], market: MarketConfig | None = None) -> list[float]:
    """P&L summed per market-calendar day of entry, in day order."""
    tz = (market or MarketConfig()).tz
    by_day: dict[date, float] = defaultdict(float)
    for t in trades:
        by_day[t.entry_time.astimezone(tz).date()] += t.pnl
    return [by_day[d] for d in sorted(by_day)]


def sharpe_ratio(returns: Sequence[float]) -> float:
    """mean / stdev of *returns*; 0.0 when the stdev is 0."""
    if len(returns) == 0:
        return 0.0
    arr = np.asarray(returns, dtype=np.float64)
    std = float(np.std(arr))
    if std == 0:
        return 0.0
    return _finite(float(np.mean(arr)) / std)


def sortino_ratio(returns: Sequence[float], ceiling: float = 10.0) -> tuple[float, bool]:
    """mean / stdev of the negative returns, capped at *ceiling*.

    Returns ``(ratio, capped)``.  A zero downside deviation (no losing
    days, or a single one) gives ``(0.0, False)``.
    """
    if len(returns) == 0:
        return 0.0, False
    arr = np.asarray(returns, dtype=np.float64)
    downside = arr[arr < 0]
    if downside.size == 0:
        return 0.0, False
    downside_std = float(np.std(downside))
    if downside_std == 0:
        return 0.0, False

    ratio = _finite(float(np.mean(arr)) / downside_std)
    if ratio > ceiling:
        return ceiling, True
    return ratio, False


def max_consecutive(pnls: Sequence[float]) -> tuple[int, int]:
    """Longest runs of wins and of losses; zero P&L breaks both."""
    best_wins = best_losses = 0
    wins = losses = 0
    for pnl in pnls:
        if pnl > 0:
            wins += 1
            losses = 0
        elif pnl < 0:
            losses += 1
            wins = 0
        else:
            wins = losses = 0
        best_wins = max(best_wins, wins)
        best_losses = max(best_losses, losses)
    return best_wins, best_losses


def recovery_factor(net_profit: float, max_drawdown: float) -> float:
    """Net profit / absolute max drawdown; 0.0 without a drawdown."""
    if max_drawdown <= 0:
        return 0.0
    return _finite(net_profit / max_drawdown)


def calmar_ratio(
    net_profit: float,
    max_drawdown: float,
    span_days: float,
    days_per_year: int = 365,
) -> float:
    """Annualized net profit / absolute max drawdown; 0.0 without a drawdown."""
    if max_drawdown <= 0:
        return 0.0
    annualized = net_profit / max(1.0, span_days) * days_per_year
    return _finite(annualized / max_drawdown)


def _total(values: Sequence[float]) -> float:
    try:
        return math.fsum(values)
    except OverflowError:
        return sum(values)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RiskMetricsEngine:
    """Compute a :class:`RiskMetrics` record from normalized trades.

    Parameters
    ----------
    config : RiskConfig | None
        Account size, risk per trade, VaR confidence and display caps.
    market : MarketConfig | None
        Market timezone for daily bucketing.
    """

    def __init__(
        self,
        config: RiskConfig | None = None,
        market: MarketConfig | None = None,
    ) -> None:
        self._cfg = config or RiskConfig()
        self._market = market or MarketConfig()

    def compute(
        self,
        trades: Sequence[AnalyzableTrade] | None,
        *,
        account_size: float | None = None,
        reference_entry: float | None = None,
        reference_stop: float | None = None,
    ) -> RiskMetrics:
        """Compute every risk metric over *trades*.

        Args:
            trades: Normalized trades (any order; sorted internally).
            account_size: Overrides ``RiskConfig.account_size``.
            reference_entry: Entry price for the recommended position size.
            reference_stop: Stop price for the recommended position size.
        """
        if not trades:
            return RiskMetrics()

        cfg = self._cfg
        account = account_size if account_size is not None else cfg.account_size
        ordered = sorted(trades, key=lambda t: t.entry_time)
        pnls = [t.pnl for t in ordered]

        # Trade statistics
        wins = [p for p in pnls if p > 0]
        losses = [-p for p in pnls if p < 0]
        n = len(pnls)
        win_rate = len(wins) / n
        loss_rate = len(losses) / n
        avg_win = _total(wins) / len(wins) if wins else 0.0
        avg_loss = _total(losses) / len(losses) if losses else 0.0
        gross_profit = _total(wins)
        gross_loss = _total(losses)
        net_profit = _total(pnls)

        if gross_loss > 0:
            profit_factor = min(gross_profit / gross_loss, cfg.profit_factor_ceiling)
        else:
            profit_factor = cfg.profit_factor_ceiling if gross_profit > 0 else 0.0

        # Drawdown
        dd = compute_drawdown(pnls, account)

        # Daily ratios
        daily = daily_returns(ordered, self._market)
        sortino, capped = sortino_ratio(daily, cfg.sortino_ceiling)
        span_days = math.ceil(
            (ordered[-1].entry_time - ordered[0].entry_time).total_seconds() / 86400
        )

        streak_wins, streak_losses = max_consecutive(pnls)

        recommended = 0.0
        if account is not None and reference_entry is not None and reference_stop is not None:
            recommended = position_size(
                account, cfg.risk_per_trade_pct, reference_entry, reference_stop
            )

        metrics = RiskMetrics(
            max_drawdown=_finite(dd.max_drawdown),
            max_drawdown_pct=_finite(dd.max_drawdown_pct),
            sharpe_ratio=sharpe_ratio(daily),
            sortino_ratio=sortino,
            sortino_capped=capped,
            calmar_ratio=calmar_ratio(net_profit, dd.max_drawdown, span_days, cfg.days_per_year),
            recovery_factor=recovery_factor(net_profit, dd.max_drawdown),
            kelly_fraction=kelly_fraction(win_rate, avg_win, avg_loss),
            risk_of_ruin_pct=risk_of_ruin(
                win_rate, avg_win, avg_loss, account, cfg.risk_per_trade_pct
            ),
            recommended_position_size=recommended,
            var_95=_finite(TailRisk.compute_var(daily, cfg.var_confidence)),
            expected_shortfall_95=_finite(TailRisk.compute_es(daily, cfg.var_confidence)),
            max_consecutive_wins=streak_wins,
            max_consecutive_losses=streak_losses,
            total_trades=n,
            win_rate=win_rate,
            avg_win=_finite(avg_win),
            avg_loss=_finite(avg_loss),
            net_profit=_finite(net_profit),
            profit_factor=_finite(profit_factor),
            expectancy=_finite(win_rate * avg_win - loss_rate * avg_loss),
        )
        logger.debug(
            "Risk metrics: trades=%d max_dd=%.2f sharpe=%.4f kelly=%.4f ruin=%.4f%%",
            n,
            metrics.max_drawdown,
            metrics.sharpe_ratio,
            metrics.kelly_fraction,
            metrics.risk_of_ruin_pct,
        )
        return metrics
