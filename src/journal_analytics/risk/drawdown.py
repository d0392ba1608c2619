"""Drawdown measurement over a closed-trade P&L sequence.

Equity starts at zero before the first trade; the running peak of
cumulative P&L is tracked and every point's distance below it is a
drawdown.  Percentages are taken against the account size when one is
known, otherwise against the peak in force at that point.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class DrawdownStats:
    """Worst drawdown of an equity path."""

    max_drawdown: float = 0.0  # Absolute currency, >= 0
    max_drawdown_pct: float = 0.0
    peak: float = 0.0  # Highest cumulative P&L reached
    trough_index: int = -1  # Trade index where max_drawdown occurred


def compute_drawdown(
    pnls: Sequence[float],
    account_size: float | None = None,
) -> DrawdownStats:
    """Compute absolute and percentage max drawdown of a P&L sequence.

    Args:
        pnls: Per-trade P&L in time order.
        account_size: Reference capital.  When given (and positive) the
            percentage is ``max_drawdown / account_size * 100``.

    Returns:
        :class:`DrawdownStats`.  Without an account size, points where
        the peak is not positive contribute to the absolute figure only,
        so a curve that never rose above zero reports 0%.
    """
    cumulative = 0.0
    peak = 0.0
    max_dd = 0.0
    max_dd_pct = 0.0
    trough = -1

    for i, pnl in enumerate(pnls):
        cumulative += pnl
        if cumulative > peak:
            peak = cumulative

        dd = peak - cumulative
        if dd > max_dd:
            max_dd = dd
            trough = i
        if peak > 0:
            max_dd_pct = max(max_dd_pct, dd / peak * 100.0)

    if account_size is not None and account_size > 0:
        max_dd_pct = max_dd / account_size * 100.0

    return DrawdownStats(
        max_drawdown=max_dd,
        max_drawdown_pct=max_dd_pct,
        peak=peak,
        trough_index=trough,
    )
