"""
In-memory cache of per-coin price history.

Keyed by (provider, coin id, range days) so a period change reuses history
while a range change refetches. Entries expire after max_age_seconds;
max_age_seconds <= 0 disables caching.
"""
from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional, Tuple

from .providers.base import PricePoint

CacheKey = Tuple[str, str, int]


class HistoryCache:
    """Last successful history per key, dropped once older than max_age_seconds."""

    def __init__(
        self,
        max_age_seconds: float = 120.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_age_s = max_age_seconds
        self._clock = clock
        self._store: Dict[CacheKey, tuple[List[PricePoint], float]] = {}

    @property
    def enabled(self) -> bool:
        return self._max_age_s > 0

    def get(self, key: CacheKey) -> Optional[List[PricePoint]]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, timestamp = entry
        if (self._clock() - timestamp) > self._max_age_s:
            del self._store[key]
            return None
        return value

    def put(self, key: CacheKey, value: List[PricePoint]) -> None:
        if self.enabled:
            self._store[key] = (list(value), self._clock())

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
