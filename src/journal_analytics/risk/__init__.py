"""Risk metrics: drawdown, return ratios, sizing, tail risk and ruin."""

from .drawdown import DrawdownStats, compute_drawdown
from .metrics import RiskMetricsEngine
from .sizing import kelly_fraction, position_size, risk_of_ruin
from .var_es import TailRisk

__all__ = [
    "DrawdownStats",
    "RiskMetricsEngine",
    "TailRisk",
    "compute_drawdown",
    "kelly_fraction",
    "position_size",
    "risk_of_ruin",
]
