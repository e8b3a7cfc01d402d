"""Partner product feed adapters and the registry that selects them per store."""

from grocerhub.services.feeds.base import FeedAdapter, HttpFeedAdapter
from grocerhub.services.feeds.partners import (
    BoxerFeedAdapter,
    GenericFeedAdapter,
    PicknPayFeedAdapter,
    ShopriteFeedAdapter,
)
from grocerhub.services.feeds.registry import FeedAdapterRegistry, get_feed_registry
from grocerhub.services.feeds.static import DEMO_FEEDS, StaticFeedAdapter

__all__ = [
    "FeedAdapter",
    "HttpFeedAdapter",
    "GenericFeedAdapter",
    "ShopriteFeedAdapter",
    "PicknPayFeedAdapter",
    "BoxerFeedAdapter",
    "StaticFeedAdapter",
    "DEMO_FEEDS",
    "FeedAdapterRegistry",
    "get_feed_registry",
]
