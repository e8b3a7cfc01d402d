"""
GrocerHub Backend — Partner Feed Adapters
===========================================

What:  One HTTP adapter per partner API shape. Each knows its partner's
       authentication scheme, envelope and field names, and maps items to
       ExternalProduct.

Partner Shapes:
    generic   GET {base}/products                 X-API-Key: <key>
              [{"externalId", "name", "price", "available", ...}]
    shoprite  GET {base}/v1/products              Authorization: Bearer <key>
              {"items": [{"sku", "title", "price": {"amount", "currency"},
                          "inStock", ...}]}
    picknpay  GET {base}/products?page=1          X-API-Key: <key>
              {"data": [{"itemCode", "name", "sellingPrice", ...}],
               "next": "<absolute url>" | null}
    boxer     GET {base}/catalog/items            HTTP basic auth
              [{"code", "name", "price", "active", ...}]
              client_id / client_secret from api_credentials
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from grocerhub.exceptions import ConfigurationError
from grocerhub.models.store import Store
from grocerhub.schemas.sync import ExternalProduct
from grocerhub.services.feeds.base import HttpFeedAdapter

logger = logging.getLogger(__name__)


def _first(record: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key present and not None."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    """IDs arrive as strings or numbers; a missing one fails ExternalProduct validation."""
    return "" if value is None else str(value)


def _as_list(payload: Any, envelope: Optional[str] = None) -> List[Dict[str, Any]]:
    if envelope is not None:
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object with an '{envelope}' array")
        payload = payload.get(envelope)
    if not isinstance(payload, list):
        raise ValueError("Expected a JSON array of products")
    for position, record in enumerate(payload):
        if not isinstance(record, dict):
            raise ValueError(f"Feed item {position} is not a JSON object")
    return payload


class GenericFeedAdapter(HttpFeedAdapter):
    """Plain JSON list at {base}/products, authenticated with an X-API-Key header."""

    provider = "generic"

    async def fetch_records(self, client: httpx.AsyncClient, store: Store) -> List[Dict[str, Any]]:
        headers = {"X-API-Key": store.api_key} if store.api_key else {}
        response = await client.get(f"{self._base_url(store)}/products", headers=headers)
        return _as_list(self._json(response))

    def parse_item(self, record: Dict[str, Any]) -> ExternalProduct:
        return ExternalProduct(
            external_id=_text(_first(record, "externalId", "external_id", "id")),
            name=record["name"],
            description=record.get("description"),
            price=record["price"],
            unit=record.get("unit"),
            category=record.get("category"),
            image_url=_first(record, "imageUrl", "image_url"),
            brand=record.get("brand"),
            available=_first(record, "available", "is_available") is not False,
            external_url=_first(record, "externalProductUrl", "external_url", "url"),
        )


class ShopriteFeedAdapter(HttpFeedAdapter):
    """Bearer-key API returning an {"items": [...]} envelope with nested prices."""

    provider = "shoprite"

    async def fetch_records(self, client: httpx.AsyncClient, store: Store) -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {store.api_key}"} if store.api_key else {}
        response = await client.get(f"{self._base_url(store)}/v1/products", headers=headers)
        return _as_list(self._json(response), envelope="items")

    def parse_item(self, record: Dict[str, Any]) -> ExternalProduct:
        price = record["price"]
        amount = price["amount"] if isinstance(price, dict) else price
        return ExternalProduct(
            external_id=str(record["sku"]),
            name=record["title"],
            description=record.get("description"),
            price=amount,
            unit=record.get("unit"),
            category=record.get("category"),
            image_url=record.get("image"),
            brand=record.get("brand"),
            available=bool(record.get("inStock", True)),
            external_url=record.get("url"),
        )


class PicknPayFeedAdapter(HttpFeedAdapter):
    """
    Paginated API: each page carries `data` and an absolute `next` URL, null
    on the last page.
    """

    provider = "picknpay"
    max_pages = 200

    async def fetch_records(self, client: httpx.AsyncClient, store: Store) -> List[Dict[str, Any]]:
        headers = {"X-API-Key": store.api_key} if store.api_key else {}
        url: Optional[str] = f"{self._base_url(store)}/products"
        params: Optional[Dict[str, Any]] = {"page": 1}
        records: List[Dict[str, Any]] = []
        pages = 0

        while url:
            pages += 1
            if pages > self.max_pages:
                raise ValueError(f"Feed pagination exceeded {self.max_pages} pages")
            response = await client.get(url, headers=headers, params=params)
            payload = self._json(response)
            records.extend(_as_list(payload, envelope="data"))
            url = payload.get("next")
            # `next` already carries its query string
            params = None

        logger.debug("Read %d pages from store '%s'", pages, store.name)
        return records

    def parse_item(self, record: Dict[str, Any]) -> ExternalProduct:
        return ExternalProduct(
            external_id=str(record["itemCode"]),
            name=record["name"],
            description=record.get("description"),
            price=record["sellingPrice"],
            unit=record.get("unitOfMeasure"),
            category=record.get("department"),
            image_url=record.get("imageUrl"),
            brand=record.get("brand"),
            available=record.get("available", True) is not False,
            external_url=record.get("productUrl"),
        )


class BoxerFeedAdapter(HttpFeedAdapter):
    """HTTP basic auth with client_id / client_secret from the store's api_credentials."""

    provider = "boxer"

    async def fetch_products(self, store: Store) -> List[ExternalProduct]:
        credentials = store.api_credentials or {}
        if not credentials.get("client_id") or not credentials.get("client_secret"):
            raise ConfigurationError(
                message=f"Store {store.name} needs client_id and client_secret credentials for the Boxer feed.",
                context={"store_id": str(store.id)},
            )
        return await super().fetch_products(store)

    async def fetch_records(self, client: httpx.AsyncClient, store: Store) -> List[Dict[str, Any]]:
        auth = httpx.BasicAuth(
            store.api_credentials["client_id"], store.api_credentials["client_secret"]
        )
        response = await client.get(f"{self._base_url(store)}/catalog/items", auth=auth)
        return _as_list(self._json(response))

    def parse_item(self, record: Dict[str, Any]) -> ExternalProduct:
        return ExternalProduct(
            external_id=str(record["code"]),
            name=record["name"],
            description=record.get("description"),
            price=record["price"],
            unit=record.get("uom"),
            category=record.get("category"),
            image_url=record.get("image"),
            brand=record.get("brand"),
            available=bool(record.get("active", True)),
            external_url=record.get("link"),
        )
