"""
Market-data providers for the RSI monitor.

Each provider lists top coins and fetches price history through one shared
HttpClient (rate limiting, retry/backoff, proxy fallback). Providers are
registered by name and chosen from config.yaml.
"""

from __future__ import annotations

from .base import Coin, MarketDataProvider, PricePoint
from .coincap import CoinCapProvider
from .coingecko import CoinGeckoProvider
from .defaults import create_default_registry, create_provider
from .registry import ProviderRegistry
from .resilience import HttpClient, RateLimiter, RetryConfig

__all__ = [
    "Coin",
    "PricePoint",
    "MarketDataProvider",
    "CoinCapProvider",
    "CoinGeckoProvider",
    "ProviderRegistry",
    "HttpClient",
    "RateLimiter",
    "RetryConfig",
    "create_default_registry",
    "create_provider",
]
