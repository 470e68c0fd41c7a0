"""
Default provider registry configuration.

Registers built-in providers and builds the configured one, wired to a
single HttpClient whose settings come from config.yaml.
To add a new provider, register it here and give it a base URL in config.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .base import MarketDataProvider
from .coincap import CoinCapProvider
from .coingecko import CoinGeckoProvider
from .registry import ProviderRegistry
from .resilience import DEFAULT_PROXY_URL, HttpClient, RetryConfig

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "coincap"


def create_default_registry() -> ProviderRegistry:
    """Create a registry with all built-in providers."""
    registry = ProviderRegistry()
    registry.register("coincap", CoinCapProvider)
    registry.register("coingecko", CoinGeckoProvider)
    return registry


def create_http_client(http_cfg: Dict[str, Any], min_interval_s: float) -> HttpClient:
    """Build the shared HttpClient from the `http` config section."""
    retry = RetryConfig(
        max_attempts=int(http_cfg.get("max_attempts", 4)),
        base_delay_s=float(http_cfg.get("base_delay_s", 1.0)),
        max_delay_s=float(http_cfg.get("max_delay_s", 30.0)),
        backoff_factor=float(http_cfg.get("backoff_factor", 2.0)),
        jitter_s=float(http_cfg.get("jitter_s", 0.25)),
        retry_after_cap_s=float(http_cfg.get("retry_after_cap_s", 120.0)),
    )
    configured = http_cfg.get("min_interval_s")
    return HttpClient(
        min_interval_s=float(configured) if configured is not None else min_interval_s,
        retry_config=retry,
        timeout_s=float(http_cfg.get("timeout_s", 15.0)),
        proxy_fallback=bool(http_cfg.get("proxy_fallback", True)),
        proxy_url=str(http_cfg.get("proxy_url") or DEFAULT_PROXY_URL),
    )


def create_provider(
    name: Optional[str] = None,
    *,
    registry: Optional[ProviderRegistry] = None,
    cfg: Optional[Dict[str, Any]] = None,
    http: Optional[HttpClient] = None,
) -> MarketDataProvider:
    """Build the configured market-data provider with resilience wrappers."""
    if cfg is None:
        from ..config import get_config

        cfg = get_config()
    reg = registry or create_default_registry()
    provider_cfg = cfg.get("provider", {})
    chosen = name or provider_cfg.get("name") or DEFAULT_PROVIDER
    factory = reg.factory(chosen)
    if http is None:
        # Registered classes and instances both expose their default spacing.
        default_interval = float(getattr(factory, "default_min_interval_s", 1.0))
        http = create_http_client(cfg.get("http", {}), default_interval)
    kwargs: Dict[str, Any] = {"http": http}
    base_url = provider_cfg.get(f"{chosen}_base_url")
    if base_url:
        kwargs["base_url"] = base_url
    logger.info("Using market-data provider %s (min interval %.2fs)", chosen, http.rate_limiter.min_interval_s)
    return reg.create(chosen, **kwargs)
