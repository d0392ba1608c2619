"""Enumerations used across the analytics engine."""

from enum import Enum


class EmotionalStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    WARNING = "warning"
    CRITICAL = "critical"


class InsightSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class PatternType(str, Enum):
    """Behavioral mistake-patterns.  Declaration order is report order."""

    REVENGE_TRADING = "revenge_trading"
    REVENGE_SIZING = "revenge_sizing"
    OVERTRADING = "overtrading"
    FOMO = "fomo"
    WIN_STREAK_OVERCONFIDENCE = "win_streak_overconfidence"
    LOSS_AVERSION = "loss_aversion"
    WEEKEND_WARRIOR = "weekend_warrior"
    NEWS_TRADER = "news_trader"


class TradeTag(str, Enum):
    """Closed taxonomy of journal tags used as behavioral signals."""

    # Discipline / risk
    NO_STOP_LOSS = "no-stop-loss"
    STOP_LOSS_USED = "stop-loss-used"
    STRATEGY_VIOLATION = "strategy-violation"
    CONFIRMED = "confirmed"  # Setup confirmed before entry

    # Emotional state
    EMOTIONAL = "emotional"
    IMPULSIVE = "impulsive"
    ANGRY = "angry"
    FRUSTRATED = "frustrated"
    ANXIOUS = "anxious"
    STRESSED = "stressed"
    FEAR = "fear"
    GREED = "greed"
    GAVE_BACK_PROFITS = "gave-back-profits"
    REVENGE = "revenge"
    OVERCONFIDENT = "overconfident"


# Legacy free-text labels that map onto a canonical tag.
TAG_ALIASES: dict[str, TradeTag] = {
    "scared": TradeTag.FEAR,
    "fearful": TradeTag.FEAR,
    "greedy": TradeTag.GREED,
    "revenge-trading": TradeTag.REVENGE,
    "cocky": TradeTag.OVERCONFIDENT,
    "setup-confirmed": TradeTag.CONFIRMED,
    "planned": TradeTag.CONFIRMED,
    "stop-loss": TradeTag.STOP_LOSS_USED,
}

# Tag groups consumed by the emotional calculator.
DISTRESS_TAGS = frozenset({
    TradeTag.ANGRY,
    TradeTag.FRUSTRATED,
    TradeTag.ANXIOUS,
    TradeTag.STRESSED,
    TradeTag.EMOTIONAL,
    TradeTag.IMPULSIVE,
})
