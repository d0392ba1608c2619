"""Core domain models used across the analytics engine.

These are the canonical "truth models" for the engine.  The normalizer
produces :class:`AnalyzableTrade`; the three analysers produce
:class:`EmotionalState`, :class:`DetectedPattern` and
:class:`RiskMetrics`.  All output models dump to plain JSON-safe values.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_serializer, field_validator

from .clock import ensure_utc
from .enums import EmotionalStatus, InsightSeverity, PatternType, TradeTag


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class AnalyzableTrade(BaseModel):
    """Canonical, immutable trade consumed by every analyser.

    ``pnl`` and ``size`` are always finite; ``size`` is non-negative.
    Timestamps are timezone-aware UTC.
    """

    model_config = {"frozen": True}

    id: str
    entry_time: datetime
    exit_time: datetime | None = None
    pnl: float = 0.0
    size: float = 0.0
    strategy_type: str = "unknown"
    tags: frozenset[TradeTag] = frozenset()
    emotional_tags: frozenset[TradeTag] = frozenset()
    unclassified_tags: frozenset[str] = frozenset()

    @field_validator("entry_time")
    @classmethod
    def _entry_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("exit_time")
    @classmethod
    def _exit_utc(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        if value is None:
            return None
        value = ensure_utc(value)
        entry = info.data.get("entry_time")
        if entry is not None and value < entry:
            return None  # Exit before entry: treat as missing
        return value

    @field_validator("pnl")
    @classmethod
    def _finite_pnl(cls, value: float) -> float:
        return finite_or_zero(value)

    @field_validator("size")
    @classmethod
    def _size_magnitude(cls, value: float) -> float:
        return abs(finite_or_zero(value))

    @property
    def has_exit(self) -> bool:
        return self.exit_time is not None

    @property
    def effective_exit(self) -> datetime:
        """Exit time, or the entry time for open/incomplete trades."""
        return self.exit_time or self.entry_time

    @property
    def holding_minutes(self) -> float:
        """Minutes between entry and a real exit; 0 without an exit."""
        if self.exit_time is None:
            return 0.0
        return (self.exit_time - self.entry_time).total_seconds() / 60.0

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.pnl < 0

    def has_tag(self, *tags: TradeTag) -> bool:
        """True if the trade carries any of *tags* (journal or emotional)."""
        return any(t in self.tags or t in self.emotional_tags for t in tags)

    @field_serializer("tags", "emotional_tags")
    def _dump_tags(self, value: frozenset[TradeTag]) -> list[str]:
        return sorted(t.value for t in value)

    @field_serializer("unclassified_tags")
    def _dump_raw_tags(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class EmotionalState(BaseModel):
    """Trading-psychology scorecard for one analysis run."""

    overall: int = 50
    discipline: float = 50.0
    patience: float = 50.0
    emotional_control: float = 50.0
    risk_awareness: float = 50.0
    confidence: float = 50.0

    # Negative emotions (higher = worse), not part of ``overall``
    fear: float = 0.0
    greed: float = 0.0
    revenge: float = 0.0
    overconfidence: float = 0.0

    status: EmotionalStatus = EmotionalStatus.NEUTRAL
    insights: list[str] = Field(default_factory=list)
    recommendation: str = ""

    trades_analyzed: int = 0
    as_of: datetime | None = None


class DetectedPattern(BaseModel):
    """Occurrences and P&L of one mistake-pattern over a trade window.

    ``total_cost`` is the summed pnl of the matching trades; it is a
    label, not a sign guarantee.  It is held in whole cents so that
    merging detections gives the same total in any grouping.
    """

    model_config = {"frozen": True}

    type: PatternType
    occurrences: int = Field(default=0, ge=0)
    total_cost: float = 0.0
    first_detected: datetime | None = None
    last_detected: datetime | None = None
    affected_trade_ids: frozenset[str] = frozenset()
    description: str = ""

    @field_validator("total_cost")
    @classmethod
    def _to_cents(cls, value: float) -> float:
        return round(finite_or_zero(value), 2)

    @field_serializer("affected_trade_ids")
    def _dump_ids(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


class RiskMetrics(BaseModel):
    """Flat record of independent risk figures.  Zero-valued by default."""

    # Drawdown
    max_drawdown: float = 0.0  # Absolute currency
    max_drawdown_pct: float = 0.0

    # Risk-adjusted returns
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    sortino_capped: bool = False
    calmar_ratio: float = 0.0
    recovery_factor: float = 0.0

    # Sizing and survival
    kelly_fraction: float = 0.0
    risk_of_ruin_pct: float = 0.0
    recommended_position_size: float = 0.0

    # Tail risk on daily returns
    var_95: float = 0.0
    expected_shortfall_95: float = 0.0

    # Streaks
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    # Trade statistics
    total_trades: int = 0
    win_rate: float = 0.0  # Fraction in [0, 1]
    avg_win: float = 0.0
    avg_loss: float = 0.0  # Positive magnitude
    net_profit: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0


class CoachInsight(BaseModel):
    """Titled coaching message derived from patterns and performance."""

    model_config = {"frozen": True}

    title: str
    message: str
    severity: InsightSeverity = InsightSeverity.INFO
    action: str = ""


class AnalysisReport(BaseModel):
    """Merged output consumed by the presentation layer."""

    emotional_state: EmotionalState
    patterns: list[DetectedPattern] = Field(default_factory=list)
    risk_metrics: RiskMetrics = Field(default_factory=RiskMetrics)
    coaching: list[CoachInsight] = Field(default_factory=list)
    trades_analyzed: int = 0
    as_of: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Export to a JSON-safe dictionary."""
        return self.model_dump(mode="json")

    def summary(self) -> dict[str, Any]:
        """Return display strings for logging / dashboards."""
        rm = self.risk_metrics
        sortino = (
            f"{rm.sortino_ratio:g}+" if rm.sortino_capped else f"{rm.sortino_ratio:.2f}"
        )
        return {
            "overall": self.emotional_state.overall,
            "status": self.emotional_state.status.value,
            "patterns": {p.type.value: p.occurrences for p in self.patterns},
            "coaching": [c.title for c in self.coaching],
            "max_dd": f"{rm.max_drawdown_pct:.2f}%",
            "sharpe": f"{rm.sharpe_ratio:.2f}",
            "sortino": sortino,
            "kelly": f"{rm.kelly_fraction:.2%}",
            "win_rate": f"{rm.win_rate:.1%}",
            "risk_of_ruin": f"{rm.risk_of_ruin_pct:.2f}%",
            "trades": rm.total_trades,
        }
