"""
Default provider wiring.

Registers the built-in providers and builds the provider chain from config.
To add a provider, register it here and add it to providers.priority.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from .. import config as app_config
from ..core.errors import MarketDataError
from .alternative import AlternativeDataProvider
from .chain import ProviderChain
from .fred import FredProvider
from .registry import ProviderRegistry
from .resilience import RetryConfig

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = ["fred", "alternative"]


def create_fred_provider(cfg: Optional[dict] = None) -> FredProvider:
    settings = app_config.fred_settings(cfg)
    fanout_timeout_s = float(app_config.cache_settings(cfg).get("fanout_timeout_s", 15.0))
    return FredProvider(
        api_key=settings.get("api_key", ""),
        base_url=settings.get("base_url", ""),
        connect_timeout_s=float(settings.get("connect_timeout_s", 5.0)),
        read_timeout_s=float(settings.get("read_timeout_s", 10.0)),
        retry_config=RetryConfig(max_retries=int(settings.get("max_retries", 1))),
        fanout_timeout_s=fanout_timeout_s,
    )


def create_alternative_provider(cfg: Optional[dict] = None) -> Optional[AlternativeDataProvider]:
    """None when the alternative source is disabled, so the chain has no secondary."""
    settings = app_config.alternative_settings(cfg)
    if not settings.get("enabled"):
        logger.debug("Alternative provider disabled")
        return None
    return AlternativeDataProvider(
        enabled=True,
        base_url=settings.get("base_url", ""),
        api_key=settings.get("api_key", ""),
        connect_timeout_s=float(settings.get("connect_timeout_s", 5.0)),
        read_timeout_s=float(settings.get("read_timeout_s", 10.0)),
        use_fallback_data=bool(settings.get("use_fallback_data", True)),
        fanout_timeout_s=float(app_config.cache_settings(cfg).get("fanout_timeout_s", 15.0)),
    )


def create_default_registry(cfg: Optional[dict] = None) -> ProviderRegistry:
    """Create a registry with all built-in providers."""
    registry = ProviderRegistry()
    registry.register("fred", lambda: create_fred_provider(cfg))
    registry.register("alternative", lambda: create_alternative_provider(cfg))
    return registry


def create_provider_chain(
    cfg: Optional[dict] = None,
    registry: Optional[ProviderRegistry] = None,
    priority: Optional[List[str]] = None,
) -> ProviderChain:
    """Primary and optional secondary from the priority list."""
    cfg = cfg if cfg is not None else app_config.get_config()
    reg = registry or create_default_registry(cfg)
    order = priority or app_config.provider_priority(cfg) or DEFAULT_PRIORITY
    providers = reg.build(order)
    if not providers:
        raise MarketDataError(f"No market-data providers available for priority {order}")
    if len(providers) > 2:
        logger.warning(
            "Only primary and secondary providers are used; ignoring %s",
            [p.provider_name for p in providers[2:]],
        )
    secondary = providers[1] if len(providers) > 1 else None
    return ProviderChain(providers[0], secondary)
