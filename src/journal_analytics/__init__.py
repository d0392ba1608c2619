"""Trading journal behavior and risk analytics.

Turns a user's closed trades into an emotional/discipline state, a
catalogue of behavioral mistake patterns and a set of risk metrics.
"""

from .analysis.reporter import AnalyticsEngine, analyze_trades
from .core.config import Settings, load_settings
from .core.models import (
    AnalysisReport,
    AnalyzableTrade,
    CoachInsight,
    DetectedPattern,
    EmotionalState,
    RiskMetrics,
)

__version__ = "0.1.0"

__all__ = [
    "AnalysisReport",
    "AnalyticsEngine",
    "AnalyzableTrade",
    "CoachInsight",
    "DetectedPattern",
    "EmotionalState",
    "RiskMetrics",
    "Settings",
    "analyze_trades",
    "load_settings",
]
