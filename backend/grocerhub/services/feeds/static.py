"""
In-memory feed adapter for development, seeding and tests.

Serves fixed ExternalProduct lists keyed by store name. `DEMO_FEEDS` holds the
sample catalogs of the three seeded partner stores.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from grocerhub.models.store import Store
from grocerhub.schemas.sync import ExternalProduct
from grocerhub.services.feeds.base import FeedAdapter

PLACEHOLDER_IMAGE = "https://placehold.co/150x150/000000/FFFFFF?text={}"

DEMO_FEEDS: Dict[str, List[ExternalProduct]] = {
    "Shoprite Pretoria North": [
        ExternalProduct(
            external_id="SRPROD001",
            name="Shoprite Full Cream Milk",
            description="Shoprite brand long life full cream milk, 1 litre.",
            price=Decimal("21.50"),
            unit="litre",
            category="Dairy & Milk",
            image_url=PLACEHOLDER_IMAGE.format("SR+Milk"),
            brand="Shoprite",
            available=True,
        ),
        ExternalProduct(
            external_id="SRPROD002",
            name="Shoprite Fresh Eggs",
            description="Dozen large fresh eggs.",
            price=Decimal("35.00"),
            unit="dozen",
            category="Dairy & Eggs",
            image_url=PLACEHOLDER_IMAGE.format("SR+Eggs"),
            brand="Shoprite",
            available=True,
        ),
        ExternalProduct(
            external_id="SRPROD003",
            name="Shoprite White Sugar",
            description="2.5kg bag of white sugar.",
            price=Decimal("55.00"),
            unit="kg",
            category="Baking",
            image_url=PLACEHOLDER_IMAGE.format("SR+Sugar"),
            brand="Shoprite",
            available=False,
        ),
    ],
    "Pick 'n Pay Brooklyn Mall": [
        ExternalProduct(
            external_id="PNPITEM101",
            name="PnP Full Cream Milk",
            description="Pick n Pay brand long life full cream milk, 1 litre.",
            price=Decimal("22.00"),
            unit="litre",
            category="Dairy & Milk",
            image_url=PLACEHOLDER_IMAGE.format("PNP+Milk"),
            brand="PnP",
            available=True,
        ),
        ExternalProduct(
            external_id="PNPITEM102",
            name="PnP Brown Bread",
            description="Freshly baked brown bread loaf.",
            price=Decimal("20.00"),
            unit="loaf",
            category="Bakery",
            image_url=PLACEHOLDER_IMAGE.format("PNP+Bread"),
            brand="PnP",
            available=True,
        ),
    ],
    "Boxer Superstores Sunnyside": [
        ExternalProduct(
            external_id="BXITEM201",
            name="Boxer Super Maize Meal",
            description="2.5kg bag of maize meal.",
            price=Decimal("38.00"),
            unit="kg",
            category="Staples",
            image_url=PLACEHOLDER_IMAGE.format("Boxer+Maize"),
            brand="Boxer",
            available=True,
        ),
    ],
}


class StaticFeedAdapter(FeedAdapter):
    """
    Returns a fixed list of products per store.

    Args:
        feeds:   store name → products; stores not listed get `default`
        default: products served to unlisted stores (empty when omitted)
    """

    provider = "static"

    def __init__(
        self,
        feeds: Optional[Dict[str, Iterable[ExternalProduct]]] = None,
        default: Optional[Iterable[ExternalProduct]] = None,
    ):
        self.feeds = {name: list(items) for name, items in (feeds or {}).items()}
        self.default = list(default or [])

    def set_feed(self, store_name: str, items: Iterable[ExternalProduct]) -> None:
        self.feeds[store_name] = list(items)

    async def fetch_products(self, store: Store) -> List[ExternalProduct]:
        items = self.feeds.get(store.name, self.default)
        # Copies, so callers never mutate the configured feed
        return [item.model_copy() for item in items]
