"""
Provider registry: central catalog of available market-data providers.

Providers register a factory under a name; config picks which one is used.
A factory is either a provider instance or a callable taking the shared
HttpClient and the provider's base URL.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from .base import MarketDataProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registry mapping provider names to factories/instances.

    Usage:
        registry = ProviderRegistry()
        registry.register("coincap", CoinCapProvider)
        provider = registry.create("coincap", http=client)
    """

    def __init__(self) -> None:
        self._factories: Dict[str, Any] = {}

    def register(self, name: str, factory: Any) -> None:
        """Register a provider class, callable or instance by name."""
        self._factories[name] = factory
        logger.debug("Registered market-data provider: %s", name)

    def factory(self, name: str) -> Any:
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(
                f"Unknown market-data provider '{name}'. "
                f"Available: {list(self._factories)}"
            )
        return factory

    def create(self, name: str, **kwargs: Any) -> MarketDataProvider:
        """Instantiate a provider by name; registered instances are returned as-is."""
        factory = self.factory(name)
        if isinstance(factory, type) or not isinstance(factory, MarketDataProvider):
            return factory(**kwargs)
        return factory

    @property
    def names(self) -> List[str]:
        return list(self._factories)
