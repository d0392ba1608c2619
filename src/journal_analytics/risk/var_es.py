"""Value-at-Risk and Expected Shortfall on daily P&L.

Historical VaR and Expected Shortfall (CVaR) over the empirical daily
return distribution.  All methods are pure functions over numpy arrays.

Unlike a portfolio risk desk, the journal reports VaR *signed*: it is
the daily P&L at the (1 - confidence) percentile, so a more negative
value is a larger loss bound.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)


class TailRisk:
    """Stateless calculator for VaR and Expected Shortfall.

    Usage::

        var = TailRisk.compute_var(daily_pnl, confidence=0.95)
        es  = TailRisk.compute_es(daily_pnl, confidence=0.95)
    """

    # ------------------------------------------------------------------
    # Historical VaR
    # ------------------------------------------------------------------

    @staticmethod
    def compute_var(
        returns: ArrayLike,
        confidence: float = 0.95,
    ) -> float:
        """Compute historical Value-at-Risk.

        Linear-interpolated percentile at ``(1 - confidence) * 100`` of
        the empirical distribution.

        Args:
            returns: Array-like of daily P&L (or returns).
            confidence: Confidence level in [0, 1].  Default 0.95.

        Returns:
            The signed percentile value.  Returns 0.0 when the input is
            empty or contains only NaN.
        """
        arr = _clean(returns)
        if arr.size == 0:
            return 0.0

        percentile = (1.0 - confidence) * 100.0
        var_value = float(np.percentile(arr, percentile))
        logger.debug(
            "Historical VaR(%.1f%%): %.6f over %d observations",
            confidence * 100,
            var_value,
            arr.size,
        )
        return var_value

    # ------------------------------------------------------------------
    # Expected Shortfall (CVaR)
    # ------------------------------------------------------------------

    @staticmethod
    def compute_es(
        returns: ArrayLike,
        confidence: float = 0.95,
    ) -> float:
        """Compute Expected Shortfall (Conditional VaR).

        Mean of the observations at or below the VaR threshold.  Signed
        like :meth:`compute_var`, so ``es <= var`` always holds.

        Returns:
            0.0 when the input is empty.
        """
        arr = _clean(returns)
        if arr.size == 0:
            return 0.0

        threshold = TailRisk.compute_var(arr, confidence)
        tail = arr[arr <= threshold]
        if tail.size == 0:
            return threshold
        return float(np.mean(tail))


def _clean(values: ArrayLike) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    return arr[np.isfinite(arr)]
