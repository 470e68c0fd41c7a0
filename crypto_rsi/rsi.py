"""
Relative Strength Index with Wilder's smoothing.

compute_rsi is pure and index-aligned with its input: entry i is the RSI
after price i, or None while fewer than `period` deltas are available.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

# Flat window (no gains, no losses) maps to the midpoint. Most RSI
# definitions leave it undefined; this one reports neutral momentum.
FLAT_RSI = 50.0


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else FLAT_RSI
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def compute_rsi(prices: Sequence[float], period: int = 14) -> List[Optional[float]]:
    """
    Wilder RSI over `prices`; output has the same length as the input.

    The first `period` entries are None. Entry `period` uses the simple mean
    of the first `period` gains/losses; later entries smooth with weight
    1/period. Fewer than period + 1 prices yields all None.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    n = len(prices)
    out: List[Optional[float]] = [None] * n
    if n <= period:
        return out

    gains = []
    losses = []
    for i in range(1, n):
        change = prices[i] - prices[i - 1]
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return out
