"""
GrocerHub Backend — Catalog Sync Schemas
==========================================

What:  The normalized external product record every feed adapter produces,
       and the summary shapes returned by the sync endpoints.

External Product Record:
    Feed adapters translate each partner's payload into `ExternalProduct`.
    Only external_id, name, price and available are required; every other
    attribute falls back to a catalog default during reconciliation.

Summary Shape (wire format is camelCase):
    {"newProductsAdded": 1, "updatedOfferings": 3, "unchangedOfferings": 0}
    A newly created offering counts as "updated"; there is no separate
    "new offering" counter.
"""

import uuid
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExternalProduct(BaseModel):
    """One item from a partner store's product feed, after adapter mapping."""

    external_id: str = Field(min_length=1, description="Item ID in the partner's system")
    name: str = Field(min_length=1)
    description: Optional[str] = None
    # Fits the Numeric(10, 2) price columns
    price: Decimal = Field(ge=0, lt=Decimal("100000000"))
    unit: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    brand: Optional[str] = None
    available: bool = True
    external_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    @field_validator("price")
    @classmethod
    def quantize_price(cls, v: Decimal) -> Decimal:
        """Prices are compared and stored at cent precision."""
        try:
            return v.quantize(Decimal("0.01"))
        except InvalidOperation as e:
            raise ValueError(f"price {v} cannot be stored at cent precision") from e

    @field_validator("description", "unit", "category", "image_url", "brand", "external_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class SyncSummary(BaseModel):
    """Change counts for one reconciliation pass over one store."""

    model_config = ConfigDict(populate_by_name=True)

    new_products_added: int = Field(default=0, alias="newProductsAdded")
    updated_offerings: int = Field(default=0, alias="updatedOfferings")
    unchanged_offerings: int = Field(default=0, alias="unchangedOfferings")


class StoreSyncResponse(BaseModel):
    """Response of POST /api/admin/stores/{store_id}/sync-products."""

    message: str
    summary: SyncSummary


class StoreSyncResult(BaseModel):
    """Outcome for one store in a sync-all run: summary on success, error otherwise."""

    store_id: uuid.UUID
    store_name: str
    succeeded: bool
    summary: Optional[SyncSummary] = None
    error: Optional[str] = None


class SyncAllResponse(BaseModel):
    results: List[StoreSyncResult]
