"""
Error taxonomy for market-data fetching.

Every failure raised by the HTTP layer or a provider derives from
MarketDataError so the orchestrator can record it per coin and carry on.
Insufficient data is not an error: build_dataset returns None for it.
"""
from __future__ import annotations

from typing import Optional


class MarketDataError(RuntimeError):
    """Base class for fetch failures. coin_id is set when a per-coin fetch failed."""

    def __init__(self, message: str, *, coin_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.coin_id = coin_id


class NetworkError(MarketDataError):
    """Transport-level failure: connection refused, DNS, timeout, proxy blocked."""


class UpstreamError(MarketDataError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, message: str, *, status: int, coin_id: Optional[str] = None) -> None:
        super().__init__(message, coin_id=coin_id)
        self.status = status


class RateLimitExceeded(UpstreamError):
    """HTTP 429 still returned after the retry budget was spent."""

    def __init__(self, message: str, *, coin_id: Optional[str] = None) -> None:
        super().__init__(message, status=429, coin_id=coin_id)


class ParseError(MarketDataError):
    """Body was not JSON or the envelope did not have the expected shape."""
