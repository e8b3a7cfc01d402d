"""
Feed adapter registry.

Maps `Store.feed_provider` to the adapter instance that understands that
partner's API. One instance per provider lives for the whole application;
HTTP adapters keep a circuit breaker per store inside it.
"""

import logging
from typing import Dict, Optional

from fastapi import Request

from grocerhub.exceptions import ConfigurationError
from grocerhub.models.store import Store
from grocerhub.services.feeds.base import FeedAdapter
from grocerhub.services.feeds.partners import (
    BoxerFeedAdapter,
    GenericFeedAdapter,
    PicknPayFeedAdapter,
    ShopriteFeedAdapter,
)
from grocerhub.services.feeds.static import DEMO_FEEDS, StaticFeedAdapter

logger = logging.getLogger(__name__)


class FeedAdapterRegistry:
    def __init__(self, adapters: Optional[Dict[str, FeedAdapter]] = None):
        self._adapters: Dict[str, FeedAdapter] = dict(adapters or {})

    @classmethod
    def default(cls) -> "FeedAdapterRegistry":
        """Registry with every built-in adapter, configured from settings."""
        registry = cls()
        for adapter in (
            GenericFeedAdapter(),
            ShopriteFeedAdapter(),
            PicknPayFeedAdapter(),
            BoxerFeedAdapter(),
            StaticFeedAdapter(feeds=DEMO_FEEDS),
        ):
            registry.register(adapter.provider, adapter)
        return registry

    def register(self, provider: str, adapter: FeedAdapter) -> None:
        self._adapters[provider.lower()] = adapter
        logger.debug("Registered feed adapter %s for provider '%s'", type(adapter).__name__, provider)

    def get(self, provider: str) -> FeedAdapter:
        adapter = self._adapters.get((provider or "").lower())
        if adapter is None:
            raise ConfigurationError(
                message=f"No feed adapter is registered for provider '{provider}'.",
                context={"provider": provider, "known": sorted(self._adapters)},
            )
        return adapter

    def for_store(self, store: Store) -> FeedAdapter:
        return self.get(store.feed_provider)

    def states(self) -> Dict[str, str]:
        """Worst circuit breaker state per provider, for /health."""
        return {name: adapter.health_state() for name, adapter in sorted(self._adapters.items())}


def get_feed_registry(request: Request) -> FeedAdapterRegistry:
    """FastAPI dependency returning the application's adapter registry."""
    return request.app.state.feed_registry
