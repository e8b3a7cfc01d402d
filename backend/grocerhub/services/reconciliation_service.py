"""
GrocerHub Backend — Catalog Reconciliation Engine
===================================================

What:  Pulls a partner store's product feed and folds it into the canonical
       catalog: finds or creates the canonical product for every feed item,
       then creates or refreshes that store's offering of it.
Who:   Called by the admin sync routes (one store, or all stores).
When:  On demand; each call is a full pass over the store's feed.

Per-Store Flow:
    ┌─────────────┐   ┌──────────────┐   ┌───────────────────────────────┐
    │ Config check│──▶│ Feed fetch   │──▶│ For each item (one SAVEPOINT) │
    │ (syncable?) │   │ (FeedAdapter)│   │  product: find or create      │
    └─────────────┘   └──────────────┘   │  offering: create / update /  │
                                          │            leave unchanged    │
                                          └───────────────────────────────┘

Counting Rules:
    - canonical product created               → newProductsAdded += 1
    - offering created                        → updatedOfferings += 1
    - offering with a material field changed  → updatedOfferings += 1
    - offering identical to the feed          → unchangedOfferings += 1
    Material fields: price, availability, external id, external URL.

Transactions:
    All item writes of one store run inside one SAVEPOINT; any failure rolls
    back every write of that pass. Offerings are read FOR UPDATE. Creating a
    product or offering runs in its own nested SAVEPOINT so a unique-constraint
    race with a concurrent sync re-reads the winner's row instead of failing.
"""

import asyncio
import logging
import time
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.config import settings
from grocerhub.database import Database
from grocerhub.exceptions import (
    ConfigurationError,
    DatabaseError,
    GrocerHubError,
    NotFoundError,
)
from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.mixins import utc_now
from grocerhub.models.store import Store
from grocerhub.schemas.sync import (
    ExternalProduct,
    StoreSyncResult,
    SyncAllResponse,
    SyncSummary,
)
from grocerhub.services.feeds import FeedAdapter, FeedAdapterRegistry

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description provided."
DEFAULT_UNIT = "unit"
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_IMAGE_URL = "https://placehold.co/150x150/CCCCCC/000000?text=No+Image"
DEFAULT_BRAND = "Generic"


class ReconciliationService:
    """
    Catalog synchronization for partner stores.

    Responsibilities:
        - sync_store():       one pass over one store's feed
        - sync_store_by_id(): load the store, pick its adapter, sync it
        - sync_all_stores():  every syncable store, concurrently
    """

    async def sync_store(
        self,
        db: AsyncSession,
        store: Store,
        adapter: FeedAdapter,
    ) -> SyncSummary:
        """
        Reconcile one store's feed into the catalog.

        Args:
            db:      Session whose transaction receives the writes
            store:   Store to synchronize
            adapter: Feed adapter for the store's provider

        Returns:
            SyncSummary with the pass's change counts

        Raises:
            ConfigurationError: Store lacks a base URL, or both key and credentials
            FeedFetchError:     Feed could not be fetched (nothing is written)
            DatabaseError:      A write failed (every write of the pass is undone)
        """
        if not store.is_syncable:
            raise ConfigurationError(
                message="Store is not configured with API details for synchronization.",
                context={"store_id": str(store.id)},
            )

        start_time = time.time()
        logger.info("Starting product sync for store '%s' (%s)", store.name, store.feed_provider)

        # Fetch before touching the catalog so a failed fetch writes nothing
        items = await adapter.fetch_products(store)

        summary = SyncSummary()
        try:
            async with db.begin_nested():
                for item in items:
                    await self._reconcile_item(db, store, item, summary)
        except GrocerHubError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Product sync for store '%s' rolled back: %s", store.name, str(e), exc_info=True
            )
            raise DatabaseError(
                message=f"Product synchronization for {store.name} failed and was rolled back.",
                context={"store_id": str(store.id), "error_type": type(e).__name__},
            ) from e

        logger.info(
            "Finished product sync for store '%s' in %.0fms: %d new products, "
            "%d updated offerings, %d unchanged offerings",
            store.name,
            (time.time() - start_time) * 1000,
            summary.new_products_added,
            summary.updated_offerings,
            summary.unchanged_offerings,
        )
        return summary

    async def sync_store_by_id(
        self,
        db: AsyncSession,
        store_id: UUID,
        registry: FeedAdapterRegistry,
    ) -> Tuple[Store, SyncSummary]:
        store = await db.get(Store, store_id)
        if store is None:
            raise NotFoundError(resource="store", resource_id=str(store_id))
        if not store.is_syncable:
            raise ConfigurationError(
                message="Store is not configured with API details for synchronization.",
                context={"store_id": str(store.id)},
            )
        adapter = registry.for_store(store)
        summary = await self.sync_store(db, store, adapter)
        return store, summary

    async def sync_all_stores(
        self,
        database: Database,
        registry: FeedAdapterRegistry,
        max_concurrency: Optional[int] = None,
    ) -> SyncAllResponse:
        """
        Synchronize every syncable store.

        Stores run concurrently, bounded by `sync_max_concurrency`, each in its
        own session and transaction. A failing store is reported in its result
        entry and does not affect the others.
        """
        async with database.session() as db:
            result = await db.execute(select(Store).order_by(Store.name))
            stores = [store for store in result.scalars().all() if store.is_syncable]

        if not stores:
            logger.info("No syncable stores found")
            return SyncAllResponse(results=[])

        semaphore = asyncio.Semaphore(max_concurrency or settings.sync_max_concurrency)

        async def run(store_id: UUID, store_name: str) -> StoreSyncResult:
            async with semaphore:
                try:
                    async with database.session() as db:
                        _, summary = await self.sync_store_by_id(db, store_id, registry)
                except GrocerHubError as e:
                    logger.warning("Sync of store '%s' failed: %s", store_name, e.message)
                    return StoreSyncResult(
                        store_id=store_id, store_name=store_name, succeeded=False, error=e.message
                    )
                except Exception as e:
                    logger.error(
                        "Unexpected error syncing store '%s': %s", store_name, str(e), exc_info=True
                    )
                    return StoreSyncResult(
                        store_id=store_id,
                        store_name=store_name,
                        succeeded=False,
                        error="An unexpected error occurred during synchronization.",
                    )
                return StoreSyncResult(
                    store_id=store_id, store_name=store_name, succeeded=True, summary=summary
                )

        results = await asyncio.gather(*(run(store.id, store.name) for store in stores))
        logger.info(
            "Synchronized %d store(s), %d failed",
            len(results),
            sum(1 for r in results if not r.succeeded),
        )
        return SyncAllResponse(results=list(results))

    # ── Item reconciliation ───────────────────────────────────────────────

    async def _reconcile_item(
        self,
        db: AsyncSession,
        store: Store,
        item: ExternalProduct,
        summary: SyncSummary,
    ) -> None:
        product, created = await self._get_or_create_product(db, item)
        if created:
            summary.new_products_added += 1

        offering = await self._find_offering(db, store.id, product.id)
        if offering is None:
            offering, created = await self._create_offering(db, store, product, item)
            if created:
                summary.updated_offerings += 1
                return

        if self._offering_matches(offering, item):
            summary.unchanged_offerings += 1
            return

        offering.price = item.price
        offering.is_available = item.available
        offering.external_product_id = item.external_id
        offering.external_url = item.external_url
        offering.last_checked_at = utc_now()
        await db.flush()
        summary.updated_offerings += 1
        logger.debug("Updated offering of '%s' at store '%s'", product.name, store.name)

    @staticmethod
    def _offering_matches(offering: StoreOffering, item: ExternalProduct) -> bool:
        return (
            offering.price == item.price
            and offering.is_available == item.available
            and offering.external_product_id == item.external_id
            and offering.external_url == item.external_url
        )

    async def _find_product(
        self, db: AsyncSession, name: str, brand: str
    ) -> Optional[CanonicalProduct]:
        result = await db.execute(
            select(CanonicalProduct).where(
                CanonicalProduct.name == name,
                CanonicalProduct.brand == brand,
            )
        )
        return result.scalar_one_or_none()

    async def _get_or_create_product(
        self, db: AsyncSession, item: ExternalProduct
    ) -> Tuple[CanonicalProduct, bool]:
        """Matches on (name, brand) only; a missing brand matches as "Generic"."""
        brand = item.brand or DEFAULT_BRAND
        product = await self._find_product(db, item.name, brand)
        if product is not None:
            return product, False

        product = CanonicalProduct(
            name=item.name,
            brand=brand,
            description=item.description or DEFAULT_DESCRIPTION,
            unit=item.unit or DEFAULT_UNIT,
            category=item.category or DEFAULT_CATEGORY,
            image_url=item.image_url or DEFAULT_IMAGE_URL,
        )
        try:
            async with db.begin_nested():
                db.add(product)
        except IntegrityError:
            # A concurrent sync created the same (name, brand) first
            existing = await self._find_product(db, item.name, brand)
            if existing is None:
                raise
            logger.debug("Product '%s' (%s) created concurrently, reusing it", item.name, brand)
            return existing, False

        logger.debug("Created catalog product '%s' (%s)", product.name, product.brand)
        return product, True

    async def _find_offering(
        self, db: AsyncSession, store_id: UUID, product_id: UUID
    ) -> Optional[StoreOffering]:
        result = await db.execute(
            select(StoreOffering)
            .where(
                StoreOffering.store_id == store_id,
                StoreOffering.product_id == product_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _create_offering(
        self,
        db: AsyncSession,
        store: Store,
        product: CanonicalProduct,
        item: ExternalProduct,
    ) -> Tuple[StoreOffering, bool]:
        offering = StoreOffering(
            store_id=store.id,
            product_id=product.id,
            external_product_id=item.external_id,
            price=item.price,
            is_available=item.available,
            external_url=item.external_url,
            last_checked_at=utc_now(),
        )
        try:
            async with db.begin_nested():
                db.add(offering)
        except IntegrityError:
            existing = await self._find_offering(db, store.id, product.id)
            if existing is None:
                raise
            return existing, False

        logger.debug("Created offering of '%s' at store '%s'", product.name, store.name)
        return offering, True


# ── Singleton Instance ────────────────────────────────────────────────────
reconciliation_service = ReconciliationService()
