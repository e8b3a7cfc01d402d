"""
GrocerHub Backend — Catalog Schemas
=====================================

What:  Request/response shapes for canonical products, store offerings and
       the customer-facing aggregated product listing.

Aggregated Listing:
    Each canonical product carries the list of stores that sell it:
    {
        "id": "...", "name": "Full Cream Milk", "brand": "Clover", ...,
        "offerings": [
            {"offering_id": "...", "store_id": "...", "store_name": "Shoprite ...",
             "price": "22.99", "is_available": true, "last_checked_at": "..."}
        ]
    }
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Canonical products ───────────────────────────────────────────────

class ProductCreate(BaseModel):
    """Admin-created canonical product."""

    name: str = Field(min_length=1, max_length=255)
    brand: str = Field(default="Generic", min_length=1, max_length=120)
    description: Optional[str] = None
    unit: str = Field(default="unit", min_length=1, max_length=50)
    category: str = Field(default="Uncategorized", min_length=1, max_length=120)
    image_url: Optional[str] = Field(default=None, max_length=1024)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    brand: str
    description: Optional[str] = None
    unit: str
    category: str
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int


# ─── Store offerings ──────────────────────────────────────────────────

class OfferingCreate(BaseModel):
    """Admin-created link between a store and a canonical product."""

    store_id: uuid.UUID
    product_id: uuid.UUID
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    is_available: bool = True
    external_product_id: Optional[str] = Field(default=None, max_length=255)
    external_url: Optional[str] = Field(default=None, max_length=1024)


class OfferingUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_available: Optional[bool] = None
    external_product_id: Optional[str] = Field(default=None, max_length=255)
    external_url: Optional[str] = Field(default=None, max_length=1024)


class OfferingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    store_id: uuid.UUID
    product_id: uuid.UUID
    price: Decimal
    is_available: bool
    external_product_id: Optional[str] = None
    external_url: Optional[str] = None
    last_checked_at: datetime


# ─── Customer aggregation ─────────────────────────────────────────────

class StoreOfferingSummary(BaseModel):
    offering_id: uuid.UUID
    store_id: uuid.UUID
    store_name: str
    price: Decimal
    is_available: bool
    last_checked_at: datetime


class AggregatedProduct(BaseModel):
    id: uuid.UUID
    name: str
    brand: str
    description: Optional[str] = None
    unit: str
    category: str
    image_url: Optional[str] = None
    offerings: List[StoreOfferingSummary] = Field(default_factory=list)
