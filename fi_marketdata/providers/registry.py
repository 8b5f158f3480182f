"""
Provider registry: central catalog of available providers.

Providers register a factory under a name. The configured priority list
determines which registered providers are built and in what order.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

from .base import MarketDataProvider

logger = logging.getLogger(__name__)

ProviderFactory = Union[MarketDataProvider, Callable[[], Optional[MarketDataProvider]]]


class ProviderRegistry:
    """
    Registry mapping provider names to factories/instances.

    A factory may return None to signal "not configured" (e.g. a disabled
    secondary); such providers are left out of the built list.

    Usage:
        registry = ProviderRegistry()
        registry.register("fred", lambda: FredProvider(api_key=key))
        providers = registry.build(["fred", "alternative"])
    """

    def __init__(self) -> None:
        self._factories: Dict[str, ProviderFactory] = {}
        self._instances: Dict[str, Optional[MarketDataProvider]] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register a provider (or a zero-arg factory for one) by name."""
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug("Registered market-data provider: %s", name)

    def get(self, name: str) -> Optional[MarketDataProvider]:
        """Get or instantiate a provider by name; None if its factory declined."""
        if name not in self._instances:
            factory = self._factories.get(name)
            if factory is None:
                raise KeyError(
                    f"Unknown provider '{name}'. Available: {list(self._factories)}"
                )
            self._instances[name] = factory() if callable(factory) else factory
        return self._instances[name]

    @property
    def names(self) -> List[str]:
        return list(self._factories)

    def build(self, priority: Optional[List[str]] = None) -> List[MarketDataProvider]:
        """Ordered list of configured providers from a priority list; unknown names are skipped."""
        names = priority or list(self._factories)
        out: List[MarketDataProvider] = []
        for n in names:
            if n not in self._factories:
                logger.warning("Provider '%s' in priority list is not registered", n)
                continue
            provider = self.get(n)
            if provider is not None:
                out.append(provider)
        return out
