"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.

Every threshold the analytics use lives here as a named default; the
defaults are the reference behavior of the trading journal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError, InvalidTimezoneError


def parse_hhmm(value: str) -> int:
    """Convert ``"HH:MM"`` to minutes after midnight."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
    except (AttributeError, ValueError) as exc:
        raise ConfigError(f"Invalid time of day {value!r}, expected HH:MM") from exc
    total = hours * 60 + minutes
    if not 0 <= minutes < 60 or not 0 <= total <= 24 * 60:
        raise ConfigError(f"Time of day out of range: {value!r}")
    return total


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class TimeWindow(BaseModel):
    """Intraday window in market-local time, start inclusive, end exclusive."""

    start: str  # "10:00"
    end: str  # "11:00"

    @field_validator("start", "end")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        parse_hhmm(value)
        return value

    @property
    def start_minute(self) -> int:
        return parse_hhmm(self.start)

    @property
    def end_minute(self) -> int:
        return parse_hhmm(self.end)

    def contains(self, minute_of_day: float) -> bool:
        return self.start_minute <= minute_of_day < self.end_minute


class MarketConfig(BaseModel):
    timezone: str = "Asia/Kolkata"
    session_open: str = "09:15"
    session_close: str = "15:30"
    trading_days: list[int] = Field(  # ISO weekday: 1=Mon .. 7=Sun
        default_factory=lambda: [1, 2, 3, 4, 5]
    )

    @field_validator("session_open", "session_close")
    @classmethod
    def _valid_session_time(cls, value: str) -> str:
        parse_hhmm(value)
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidTimezoneError(value) from exc
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class EmotionalConfig(BaseModel):
    quick_trade_minutes: float = 30.0  # Entry this soon after a loss = impatient
    overtrading_day_limit: int = 5  # More trades than this on a day
    overtrading_day_penalty: float = 5.0
    oversize_multiplier: float = 1.5  # x average size during losing streaks
    greed_size_multiplier: float = 2.0
    fear_size_multiplier: float = 0.5
    early_exit_minutes: float = 30.0
    patience_bonus_minutes: float = 240.0
    recent_trade_count: int = 20
    confidence_band: float = 10.0
    risk_reward_floor: float = 1.5
    default_risk_reward: float = 1.8
    size_cv_limit: float = 0.5
    streak_length: int = 3  # Winning streak length checked for overconfidence


class PatternConfig(BaseModel):
    revenge_minutes: float = 30.0
    revenge_size_multiplier: float = 1.5
    trailing_size_window: int = 20
    overtrading_day_limit: int = 5
    fomo_windows: list[TimeWindow] = Field(
        default_factory=lambda: [
            TimeWindow(start="10:00", end="11:00"),
            TimeWindow(start="14:00", end="15:00"),
        ]
    )
    win_streak_length: int = 3
    win_streak_size_multiplier: float = 1.5
    loss_aversion_hold_ratio: float = 1.5
    session_edge_minutes: int = 30


class CoachConfig(BaseModel):
    min_trades: int = 5  # Fewer trades: no coaching at all
    performance_min_trades: int = 10  # Win-rate / average-trade insights need this many
    max_insights: int = 3
    revenge_min_occurrences: int = 2
    overtrading_min_days: int = 2
    fomo_min_share: float = 0.3
    low_win_rate_pct: float = 40.0
    strong_win_rate_pct: float = 60.0
    currency_symbol: str = "₹"


class RiskConfig(BaseModel):
    account_size: float | None = None
    risk_per_trade_pct: float = 2.0  # Percent of account risked per trade
    var_confidence: float = 0.95
    sortino_ceiling: float = 10.0
    profit_factor_ceiling: float = 999.0
    days_per_year: int = 365


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level analytics settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    market: MarketConfig = Field(default_factory=MarketConfig)
    emotional: EmotionalConfig = Field(default_factory=EmotionalConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    coach: CoachConfig = Field(default_factory=CoachConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "JOURNAL_ANALYTICS_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
