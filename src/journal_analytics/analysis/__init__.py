"""Report aggregation."""

from .reporter import AnalyticsEngine, analyze_trades

__all__ = ["AnalyticsEngine", "analyze_trades"]
