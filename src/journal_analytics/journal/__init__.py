"""Trade journal analysis: normalization, emotional state and behavior patterns.

Key components
--------------
normalize_trades          Raw journal rows -> time-ordered AnalyzableTrade list
EmotionalStateCalculator  Five discipline traits, four negative traits, overall score
PatternDetector           Rule registry for revenge trading, FOMO, overtrading, ...
merge_patterns            Combine pattern batches from several analyses
TradingCoach              Titled coaching insights from patterns and metrics
"""

from .coach import TradingCoach
from .emotional import EmotionalStateCalculator, default_state
from .normalizer import normalize_trade, normalize_trades
from .patterns import (
    PatternDetector,
    PatternRule,
    TradeContext,
    default_rules,
    merge_pattern_rows,
    merge_patterns,
)

__all__ = [
    "EmotionalStateCalculator",
    "PatternDetector",
    "PatternRule",
    "TradeContext",
    "TradingCoach",
    "default_rules",
    "default_state",
    "merge_pattern_rows",
    "merge_patterns",
    "normalize_trade",
    "normalize_trades",
]
