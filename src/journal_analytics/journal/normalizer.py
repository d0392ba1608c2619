"""Trade normalizer: raw persisted rows to canonical trades.

Raw rows come from the journal database, CSV imports and broker syncs,
so field names and types vary: numbers arrive as strings, quantities
are called ``quantity`` or ``size``, timestamps may be ISO strings or
epoch numbers.  :func:`normalize_trades` parses all of them defensively
and returns :class:`AnalyzableTrade` objects sorted by entry time.

Parsing policy
--------------
* Numbers use the leading numeric prefix of a string (``"12.5 INR"``
  reads as 12.5); anything unparsable, NaN or infinite becomes ``0``.
* Sizes are magnitudes (negative quantities from short-side exports are
  made positive).
* Naive timestamps are UTC.  A row without a usable entry time cannot
  be ordered and is dropped with a warning.
* Free-text tags are folded into the closed :class:`TradeTag` taxonomy;
  anything else lands in ``unclassified_tags``.

Usage::

    trades = normalize_trades(rows)
    trades[0].entry_time  # earliest trade
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from journal_analytics.core.clock import ensure_utc
from journal_analytics.core.enums import TAG_ALIASES, TradeTag
from journal_analytics.core.models import AnalyzableTrade

logger = logging.getLogger(__name__)

ID_KEYS = ("id", "trade_id")
PNL_KEYS = ("pnl", "net_pnl", "netPnl", "profit_loss", "realized_pnl")
SIZE_KEYS = ("size", "quantity", "qty", "position_size")
ENTRY_KEYS = ("entryTime", "entry_time", "trade_date", "created_at")
EXIT_KEYS = ("exitTime", "exit_time", "closed_at")
STRATEGY_KEYS = ("strategyType", "strategy_type", "strategy")
TAG_KEYS = ("tags",)
EMOTIONAL_TAG_KEYS = ("emotionalTags", "emotional_tags", "emotions")

# Epoch values above this are milliseconds, not seconds
_EPOCH_MS_THRESHOLD = 1e11

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_EPOCH_TEXT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")

_TAG_LOOKUP: dict[str, TradeTag] = {t.value: t for t in TradeTag}
_TAG_LOOKUP.update(TAG_ALIASES)


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

def parse_number(value: Any) -> float:
    """Parse the leading number of *value*; failures give 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float, Decimal)):
            result = float(value)
        elif isinstance(value, str):
            match = _FLOAT_PREFIX.match(value)
            if match is None:
                return 0.0
            result = float(match.group(1))
        else:
            return 0.0
    except OverflowError:  # ints beyond float range
        return 0.0
    return result if math.isfinite(result) else 0.0


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime, date, ISO string or epoch number to aware UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float, Decimal)):
        return _from_epoch(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # Bare numbers are epoch values, except compact YYYYMMDD dates
        if _EPOCH_TEXT.match(text) and not (len(text) == 8 and text.isdigit()):
            return _from_epoch(text)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _from_epoch(value: Any) -> datetime | None:
    try:
        seconds = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    if abs(seconds) > _EPOCH_MS_THRESHOLD:
        seconds /= 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_tags(value: Any) -> tuple[frozenset[TradeTag], frozenset[str]]:
    """Split raw labels into known :class:`TradeTag` values and leftovers."""
    if value is None:
        return frozenset(), frozenset()
    if isinstance(value, str):
        labels: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        labels = value
    else:
        return frozenset(), frozenset()

    known: set[TradeTag] = set()
    unknown: set[str] = set()
    for label in labels:
        if not isinstance(label, str):
            continue
        key = _canonical_label(label)
        if not key:
            continue
        tag = _TAG_LOOKUP.get(key)
        if tag is None:
            unknown.add(key)
        else:
            known.add(tag)
    return frozenset(known), frozenset(unknown)


def _canonical_label(label: str) -> str:
    key = label.strip().casefold().replace("_", "-").replace(" ", "-")
    return re.sub(r"-{2,}", "-", key)


def _first(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Value of the first alias present with a non-empty value."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_trade(row: Mapping[str, Any], index: int = 0) -> AnalyzableTrade | None:
    """Normalize one raw row.  Returns None when no entry time is usable."""
    entry_time = parse_timestamp(_first(row, ENTRY_KEYS))
    if entry_time is None:
        return None

    exit_time = parse_timestamp(_first(row, EXIT_KEYS))
    if exit_time is not None and exit_time < entry_time:
        exit_time = None

    raw_id = _first(row, ID_KEYS)
    trade_id = str(raw_id) if raw_id is not None else f"trade-{index}"

    strategy = _first(row, STRATEGY_KEYS)

    tags, unknown = parse_tags(_first(row, TAG_KEYS))
    emotional_tags, unknown_emotional = parse_tags(_first(row, EMOTIONAL_TAG_KEYS))

    return AnalyzableTrade(
        id=trade_id,
        entry_time=entry_time,
        exit_time=exit_time,
        pnl=parse_number(_first(row, PNL_KEYS)),
        size=abs(parse_number(_first(row, SIZE_KEYS))),
        strategy_type=str(strategy) if strategy is not None else "unknown",
        tags=tags,
        emotional_tags=emotional_tags,
        unclassified_tags=unknown | unknown_emotional,
    )


def normalize_trades(
    rows: Iterable[Mapping[str, Any] | AnalyzableTrade] | None,
) -> list[AnalyzableTrade]:
    """Normalize raw rows into trades sorted ascending by entry time.

    Already-normalized :class:`AnalyzableTrade` objects pass through.
    Rows that are not mappings, or that carry no usable entry time, are
    dropped; every other malformed field degrades to ``0``.  Ties keep
    their input order.
    """
    if rows is None:
        return []

    trades: list[AnalyzableTrade] = []
    dropped = 0
    for index, row in enumerate(rows):
        if isinstance(row, AnalyzableTrade):
            trades.append(row)
            continue
        if not isinstance(row, Mapping):
            dropped += 1
            logger.warning("Skipping trade row %d: not a mapping (%s)", index, type(row).__name__)
            continue
        trade = normalize_trade(row, index)
        if trade is None:
            dropped += 1
            logger.warning("Skipping trade row %d: no usable entry time", index)
            continue
        trades.append(trade)

    trades.sort(key=lambda t: t.entry_time)
    logger.debug("Normalized %d trades (%d dropped)", len(trades), dropped)
    return trades
