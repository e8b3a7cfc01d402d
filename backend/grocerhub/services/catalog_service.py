"""
GrocerHub Backend — Catalog Service
=====================================

What:  Customer-facing product aggregation (each canonical product with the
       stores that sell it) and admin management of products and offerings.
Who:   Customer product listing, admin product-catalog and store-products routes.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocerhub.exceptions import ConflictError, NotFoundError
from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.mixins import utc_now
from grocerhub.models.store import Store
from grocerhub.schemas.catalog import (
    AggregatedProduct,
    OfferingCreate,
    OfferingUpdate,
    ProductCreate,
    StoreOfferingSummary,
)

logger = logging.getLogger(__name__)


class CatalogService:
    async def list_aggregated_products(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        available_only: bool = False,
    ) -> List[AggregatedProduct]:
        """
        Every canonical product with its store offerings, cheapest first.

        Products without offerings are listed with an empty list. With
        `available_only`, unavailable offerings are hidden and products left
        without any offering are dropped.
        """
        query = (
            select(CanonicalProduct)
            .options(selectinload(CanonicalProduct.offerings).selectinload(StoreOffering.store))
            .order_by(CanonicalProduct.name, CanonicalProduct.brand)
        )
        if category:
            query = query.where(CanonicalProduct.category == category)

        result = await db.execute(query)
        aggregated = []
        for product in result.scalars().all():
            offerings = [
                StoreOfferingSummary(
                    offering_id=offering.id,
                    store_id=offering.store_id,
                    store_name=offering.store.name,
                    price=offering.price,
                    is_available=offering.is_available,
                    last_checked_at=offering.last_checked_at,
                )
                for offering in product.offerings
                if offering.is_available or not available_only
            ]
            if available_only and not offerings:
                continue
            aggregated.append(
                AggregatedProduct(
                    id=product.id,
                    name=product.name,
                    brand=product.brand,
                    description=product.description,
                    unit=product.unit,
                    category=product.category,
                    image_url=product.image_url,
                    offerings=offerings,
                )
            )
        return aggregated

    # ── Canonical products ────────────────────────────────────────────────

    async def list_products(self, db: AsyncSession) -> List[CanonicalProduct]:
        result = await db.execute(
            select(CanonicalProduct).order_by(CanonicalProduct.name, CanonicalProduct.brand)
        )
        return list(result.scalars().all())

    async def get_product(self, db: AsyncSession, product_id: UUID) -> CanonicalProduct:
        product = await db.get(CanonicalProduct, product_id)
        if product is None:
            raise NotFoundError(resource="product", resource_id=str(product_id))
        return product

    async def create_product(self, db: AsyncSession, data: ProductCreate) -> CanonicalProduct:
        product = CanonicalProduct(**data.model_dump())
        try:
            async with db.begin_nested():
                db.add(product)
        except IntegrityError as e:
            raise ConflictError(
                message=f"Product '{data.name}' by {data.brand} already exists in the catalog.",
                context={"name": data.name, "brand": data.brand},
            ) from e
        logger.info("Catalog product created: '%s' (%s)", product.name, product.brand)
        return product

    # ── Store offerings ───────────────────────────────────────────────────

    async def list_offerings(
        self, db: AsyncSession, store_id: Optional[UUID] = None
    ) -> List[StoreOffering]:
        query = select(StoreOffering).order_by(StoreOffering.store_id, StoreOffering.price)
        if store_id is not None:
            query = query.where(StoreOffering.store_id == store_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create_offering(self, db: AsyncSession, data: OfferingCreate) -> StoreOffering:
        if await db.get(Store, data.store_id) is None:
            raise NotFoundError(resource="store", resource_id=str(data.store_id))
        if await db.get(CanonicalProduct, data.product_id) is None:
            raise NotFoundError(resource="product", resource_id=str(data.product_id))

        offering = StoreOffering(**data.model_dump(), last_checked_at=utc_now())
        try:
            async with db.begin_nested():
                db.add(offering)
        except IntegrityError as e:
            raise ConflictError(
                message="This store already offers this product.",
                context={"store_id": str(data.store_id), "product_id": str(data.product_id)},
            ) from e
        logger.info("Offering created: product %s at store %s", data.product_id, data.store_id)
        return offering

    async def update_offering(
        self, db: AsyncSession, offering_id: UUID, data: OfferingUpdate
    ) -> StoreOffering:
        offering = await db.get(StoreOffering, offering_id)
        if offering is None:
            raise NotFoundError(resource="store offering", resource_id=str(offering_id))

        changes: Dict[str, object] = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(offering, field, value)
        if changes:
            offering.last_checked_at = utc_now()
            await db.flush()
        return offering


# ── Singleton Instance ────────────────────────────────────────────────────
catalog_service = CatalogService()
