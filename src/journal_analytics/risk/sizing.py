"""Position sizing, Kelly criterion and risk of ruin.

Every function returns a finite number.  Degenerate inputs (zero price
distance, no losses, non-positive capital) take an explicit zero branch
instead of dividing by zero.
"""

from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)


def kelly_fraction(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """Kelly criterion position fraction.

    Kelly% = W - (1-W)/R
    where W = win rate in [0, 1], R = avg_win/avg_loss ratio.

    ``avg_loss`` is a magnitude (its sign is ignored).  Returns 0.0 when
    either average is zero; the result is clamped to [0, 1].
    """
    avg_loss = abs(avg_loss)
    if avg_loss == 0 or avg_win <= 0:
        return 0.0

    # W - (1-W)/R, written to avoid dividing by an underflowed R
    kelly = win_rate - (1 - win_rate) * avg_loss / avg_win
    if not math.isfinite(kelly):
        return 0.0
    return max(0.0, min(1.0, kelly))


def position_size(
    account_size: float,
    risk_per_trade_pct: float,
    entry_price: float,
    stop_price: float,
) -> float:
    """Position size based on explicit entry and stop-loss prices.

    Size = floor((account_size * risk_pct / 100) / |entry_price - stop_price|)

    Whole units only: a fractional share or lot cannot be bought.

    Returns 0.0 (the rejection sentinel) when the stop sits on the entry
    or any input is non-positive.
    """
    if account_size <= 0 or risk_per_trade_pct <= 0 or entry_price <= 0 or stop_price <= 0:
        return 0.0

    distance = abs(entry_price - stop_price)
    if distance == 0:
        logger.warning(
            "position_size: zero stop distance (entry=%.4f, stop=%.4f), rejecting",
            entry_price,
            stop_price,
        )
        return 0.0

    risk_amount = account_size * risk_per_trade_pct / 100.0
    size = risk_amount / distance
    if not math.isfinite(size):
        return 0.0
    return float(math.floor(size))


def risk_of_ruin(
    win_rate: float,
    avg_win: float,
    avg_loss: float,
    account_size: float | None,
    risk_per_trade_pct: float,
) -> float:
    """Probability (percent) of losing the whole account.

    Classical fixed-fraction gambler's-ruin approximation::

        E   = W * R - (1 - W)            edge per unit risked, R = avg_win/avg_loss
        U   = 100 / risk_per_trade_pct   losing trades needed to wipe the account
        RoR = ((1 - E) / (1 + E)) ** U   for E > 0, else 100%

    The base is clamped to [0, 1], so RoR never decreases when the risk
    per trade grows or the win rate falls.  With no losing trades on
    record (``avg_loss == 0``) the estimate is 0.

    ``account_size`` only gates the estimate: U already expresses the
    account in units of risk, so ``None`` (unknown) is accepted and a
    non-positive account reports 0.
    """
    if (account_size is not None and account_size <= 0) or risk_per_trade_pct <= 0:
        return 0.0

    avg_loss = abs(avg_loss)
    if avg_loss == 0:
        return 0.0

    w = max(0.0, min(1.0, win_rate))
    r = max(0.0, avg_win) / avg_loss
    edge = w * r - (1 - w)
    if math.isnan(edge) or edge <= 0:
        return 100.0
    if math.isinf(edge):
        return 0.0

    base = max(0.0, min(1.0, (1 - edge) / (1 + edge)))
    units = 100.0 / min(risk_per_trade_pct, 100.0)
    ruin = base ** units * 100.0
    return ruin if math.isfinite(ruin) else 0.0
