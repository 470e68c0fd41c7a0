"""
Provider interfaces and data contracts.

Every market-data provider implements MarketDataProvider: list the top coins
by market cap and fetch a coin's price history over a trailing window.
Data is returned via frozen dataclasses for immutability and type safety.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class Coin:
    """Immutable coin identity as listed by a provider."""

    id: str
    name: str
    symbol: str


@dataclass(frozen=True)
class PricePoint:
    """One USD price observation; timestamp is epoch milliseconds."""

    timestamp: int
    price: float

    def is_valid(self) -> bool:
        return math.isfinite(self.timestamp) and math.isfinite(self.price)


@runtime_checkable
class MarketDataProvider(Protocol):
    """Protocol for market-data providers."""

    @property
    def provider_name(self) -> str: ...

    default_min_interval_s: float

    def list_top_coins(self, limit: int) -> List[Coin]:
        """Top `limit` coins by market cap, in rank order, ids unique."""
        ...

    def fetch_history(self, coin_id: str, range_days: int) -> List[PricePoint]:
        """Price history for the trailing `range_days` days, oldest first."""
        ...


def time_window(range_days: int, now_ms: Optional[int] = None) -> Tuple[int, int]:
    """Absolute [start, end] window in epoch ms ending now."""
    end = int(time.time() * 1000) if now_ms is None else int(now_ms)
    return end - int(range_days) * DAY_MS, end


def to_float(x: Any) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        value = float(x)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def to_timestamp_ms(x: Any) -> Optional[int]:
    value = to_float(x)
    return int(value) if value is not None else None


def make_price_point(raw_ts: Any, raw_price: Any) -> Optional[PricePoint]:
    """PricePoint from raw fields, or None when either field is missing or non-finite."""
    ts = to_timestamp_ms(raw_ts)
    price = to_float(raw_price)
    if ts is None or price is None:
        return None
    return PricePoint(timestamp=ts, price=price)


def unique_coins(coins: List[Coin]) -> List[Coin]:
    """Drop repeated ids, keeping the first (highest-ranked) occurrence."""
    seen: Dict[str, Coin] = {}
    for coin in coins:
        seen.setdefault(coin.id, coin)
    return list(seen.values())
