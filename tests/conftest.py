"""Shared fixtures for the journal-analytics test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from journal_analytics.core.clock import FixedClock
from journal_analytics.core.config import MarketConfig

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@pytest.fixture
def as_of() -> datetime:
    """Report instant a few days after the default trade dates."""
    return datetime(2024, 3, 10, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(as_of: datetime) -> FixedClock:
    return FixedClock(as_of)


# ---------------------------------------------------------------------------
# Markets
# ---------------------------------------------------------------------------

@pytest.fixture
def ist_market() -> MarketConfig:
    return MarketConfig()


@pytest.fixture
def utc_market() -> MarketConfig:
    """Market whose calendar days are UTC days."""
    return MarketConfig(timezone="UTC")
