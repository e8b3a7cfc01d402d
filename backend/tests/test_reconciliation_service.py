"""
GrocerHub Backend — Catalog Reconciliation Tests
==================================================

What:  ReconciliationService against a real (in-memory SQLite) database with
       static feed adapters.

What we test:
    ✅ New feed items create canonical products and offerings
    ✅ A second pass over the same feed changes nothing, timestamps included
    ✅ A product or offering inserted by a concurrent sync is re-read and reused
    ✅ Material changes update the offering and its last_checked_at
    ✅ Missing attributes fall back to catalog defaults; no brand matches "Generic"
    ✅ Stores sharing a product share one canonical product
    ✅ Unconfigured store, unknown store, failed fetch and failed write
    ✅ sync_all_stores reports each store independently
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from grocerhub.exceptions import (
    ConfigurationError,
    DatabaseError,
    FeedFetchError,
    NotFoundError,
)
from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.store import Store
from grocerhub.services.feeds import FeedAdapter, FeedAdapterRegistry, StaticFeedAdapter
from grocerhub.services.reconciliation_service import (
    DEFAULT_BRAND,
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    DEFAULT_IMAGE_URL,
    DEFAULT_UNIT,
    ReconciliationService,
)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _offering(db, store_id, product_id) -> StoreOffering:
    result = await db.execute(
        select(StoreOffering)
        .where(StoreOffering.store_id == store_id, StoreOffering.product_id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestSyncStore:
    """One reconciliation pass over one store."""

    def setup_method(self):
        self.service = ReconciliationService()

    @pytest.mark.asyncio
    async def test_new_item_creates_product_and_offering(self, db, marketplace, static_feed):
        store = await db.get(Store, marketplace.store_id)

        summary = await self.service.sync_store(db, store, static_feed)

        # MILK-1 matches the existing offering exactly; EGGS-1 is new
        assert summary.new_products_added == 1
        assert summary.updated_offerings == 1
        assert summary.unchanged_offerings == 1

        eggs = (
            await db.execute(
                select(CanonicalProduct).where(CanonicalProduct.name == "Free Range Eggs")
            )
        ).scalar_one()
        assert eggs.brand == "Testbrand"
        assert eggs.unit == "dozen"
        offering = await _offering(db, store.id, eggs.id)
        assert offering.price == Decimal("42.50")
        assert offering.external_product_id == "EGGS-1"
        assert offering.is_available is True

    @pytest.mark.asyncio
    async def test_second_pass_is_unchanged(self, db, marketplace, static_feed):
        store = await db.get(Store, marketplace.store_id)
        await self.service.sync_store(db, store, static_feed)
        products_before = await _count(db, CanonicalProduct)
        offerings_before = await _count(db, StoreOffering)
        checked_before = (await _offering(db, store.id, marketplace.milk_id)).last_checked_at

        summary = await self.service.sync_store(db, store, static_feed)

        assert summary.new_products_added == 0
        assert summary.updated_offerings == 0
        assert summary.unchanged_offerings == 2
        assert await _count(db, CanonicalProduct) == products_before
        assert await _count(db, StoreOffering) == offerings_before
        after = await _offering(db, store.id, marketplace.milk_id)
        assert after.last_checked_at == checked_before

    @pytest.mark.asyncio
    async def test_product_created_concurrently_is_reused(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        feed = StaticFeedAdapter(
            feeds={store.name: [make_item("MILK-1", "Full Cream Milk", "22.99", brand="Clover")]}
        )
        find_product = self.service._find_product
        lookups = []

        async def miss_first_lookup(session, name, brand):
            # Another sync inserts the row between our lookup and our insert
            lookups.append(name)
            if len(lookups) == 1:
                return None
            return await find_product(session, name, brand)

        with patch.object(self.service, "_find_product", side_effect=miss_first_lookup):
            summary = await self.service.sync_store(db, store, feed)

        assert len(lookups) == 2
        assert summary.new_products_added == 0
        assert summary.unchanged_offerings == 1
        assert await _count(db, CanonicalProduct) == 3

    @pytest.mark.asyncio
    async def test_offering_created_concurrently_is_reused(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        feed = StaticFeedAdapter(
            feeds={store.name: [make_item("MILK-1", "Full Cream Milk", "24.49", brand="Clover")]}
        )
        find_offering = self.service._find_offering
        lookups = []

        async def miss_first_lookup(session, store_id, product_id):
            lookups.append(product_id)
            if len(lookups) == 1:
                return None
            return await find_offering(session, store_id, product_id)

        with patch.object(self.service, "_find_offering", side_effect=miss_first_lookup):
            summary = await self.service.sync_store(db, store, feed)

        assert len(lookups) == 2
        assert summary.updated_offerings == 1
        assert await _count(db, StoreOffering) == 3
        offering = await _offering(db, store.id, marketplace.milk_id)
        assert offering.id == marketplace.milk_offering_id
        assert offering.price == Decimal("24.49")

    @pytest.mark.asyncio
    async def test_price_change_updates_offering(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        before = await _offering(db, store.id, marketplace.milk_id)
        checked_before = before.last_checked_at
        feed = StaticFeedAdapter(
            feeds={store.name: [make_item("MILK-1", "Full Cream Milk", "24.49", brand="Clover")]}
        )

        summary = await self.service.sync_store(db, store, feed)

        assert summary.updated_offerings == 1
        assert summary.unchanged_offerings == 0
        after = await _offering(db, store.id, marketplace.milk_id)
        assert after.price == Decimal("24.49")
        assert after.last_checked_at != checked_before

    @pytest.mark.asyncio
    async def test_availability_and_url_are_material(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        feed = StaticFeedAdapter(
            feeds={
                store.name: [
                    make_item("MILK-1", "Full Cream Milk", "22.99", brand="Clover", available=False),
                    make_item(
                        "BREAD-1",
                        "White Bread (Large)",
                        "18.00",
                        brand="Albany",
                        external_url="https://shop.test/bread",
                    ),
                ]
            }
        )

        summary = await self.service.sync_store(db, store, feed)

        assert summary.updated_offerings == 2
        milk = await _offering(db, store.id, marketplace.milk_id)
        bread = await _offering(db, store.id, marketplace.bread_id)
        assert milk.is_available is False
        assert bread.external_url == "https://shop.test/bread"

    @pytest.mark.asyncio
    async def test_missing_attributes_use_catalog_defaults(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        feed = StaticFeedAdapter(
            feeds={
                store.name: [
                    make_item("RICE-1", "Long Grain Rice", "31.00", brand=None, unit=None, category=None)
                ]
            }
        )

        summary = await self.service.sync_store(db, store, feed)

        assert summary.new_products_added == 1
        rice = (
            await db.execute(
                select(CanonicalProduct).where(CanonicalProduct.name == "Long Grain Rice")
            )
        ).scalar_one()
        assert rice.brand == DEFAULT_BRAND
        assert rice.description == DEFAULT_DESCRIPTION
        assert rice.unit == DEFAULT_UNIT
        assert rice.category == DEFAULT_CATEGORY
        assert rice.image_url == DEFAULT_IMAGE_URL

    @pytest.mark.asyncio
    async def test_missing_brand_matches_generic_product(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        generic = CanonicalProduct(name="Table Salt", brand="Generic", unit="kg", category="Pantry")
        db.add(generic)
        await db.flush()
        feed = StaticFeedAdapter(
            feeds={store.name: [make_item("SALT-1", "Table Salt", "9.99", brand=None)]}
        )

        summary = await self.service.sync_store(db, store, feed)

        assert summary.new_products_added == 0
        offering = await _offering(db, store.id, generic.id)
        assert offering.external_product_id == "SALT-1"

    @pytest.mark.asyncio
    async def test_stores_share_canonical_product(self, db, marketplace, make_item):
        first = await db.get(Store, marketplace.store_id)
        second = Store(
            name="Test Market Menlyn",
            street="3 Atterbury Rd",
            city="Pretoria",
            postal_code="0181",
            api_base_url="https://feeds.test/menlyn",
            api_key="KEY",
            feed_provider="static",
        )
        db.add(second)
        await db.flush()
        item = make_item("COF-1", "Instant Coffee", "89.99", brand="Frisco")
        feed = StaticFeedAdapter(feeds={first.name: [item], second.name: [item]})

        first_summary = await self.service.sync_store(db, first, feed)
        second_summary = await self.service.sync_store(db, second, feed)

        assert first_summary.new_products_added == 1
        assert second_summary.new_products_added == 0
        assert second_summary.updated_offerings == 1
        coffee_count = (
            await db.execute(
                select(func.count())
                .select_from(CanonicalProduct)
                .where(CanonicalProduct.name == "Instant Coffee")
            )
        ).scalar_one()
        assert coffee_count == 1

    @pytest.mark.asyncio
    async def test_unconfigured_store_raises(self, db, marketplace, static_feed):
        store = await db.get(Store, marketplace.unsynced_store_id)

        with pytest.raises(ConfigurationError):
            await self.service.sync_store(db, store, static_feed)

    @pytest.mark.asyncio
    async def test_fetch_failure_writes_nothing(self, db, marketplace):
        store = await db.get(Store, marketplace.store_id)
        adapter = AsyncMock(spec=FeedAdapter)
        adapter.fetch_products.side_effect = FeedFetchError(
            message=f"Could not fetch products from {store.name}."
        )
        products_before = await _count(db, CanonicalProduct)

        with pytest.raises(FeedFetchError):
            await self.service.sync_store(db, store, adapter)

        assert await _count(db, CanonicalProduct) == products_before

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back_whole_pass(self, db, marketplace, make_item):
        store = await db.get(Store, marketplace.store_id)
        feed = StaticFeedAdapter(
            feeds={
                store.name: [
                    make_item("TEA-1", "Rooibos Tea", "45.00"),
                    make_item("JAM-1", "Apricot Jam", "32.00"),
                ]
            }
        )
        products_before = await _count(db, CanonicalProduct)
        offerings_before = await _count(db, StoreOffering)
        original = self.service._create_offering
        calls = []

        async def fail_on_second(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise OperationalError("INSERT INTO store_offerings", {}, Exception("disk I/O error"))
            return await original(*args, **kwargs)

        with patch.object(self.service, "_create_offering", side_effect=fail_on_second):
            with pytest.raises(DatabaseError):
                await self.service.sync_store(db, store, feed)

        assert await _count(db, CanonicalProduct) == products_before
        assert await _count(db, StoreOffering) == offerings_before


class TestSyncStoreById:
    def setup_method(self):
        self.service = ReconciliationService()

    @pytest.mark.asyncio
    async def test_unknown_store_raises_not_found(self, db, marketplace, static_feed):
        registry = FeedAdapterRegistry({"static": static_feed})

        with pytest.raises(NotFoundError):
            await self.service.sync_store_by_id(db, uuid4(), registry)

    @pytest.mark.asyncio
    async def test_unconfigured_store_raises(self, db, marketplace, static_feed):
        registry = FeedAdapterRegistry({"static": static_feed})

        with pytest.raises(ConfigurationError):
            await self.service.sync_store_by_id(db, marketplace.unsynced_store_id, registry)

    @pytest.mark.asyncio
    async def test_returns_store_and_summary(self, db, marketplace, static_feed):
        registry = FeedAdapterRegistry({"static": static_feed})

        store, summary = await self.service.sync_store_by_id(db, marketplace.store_id, registry)

        assert store.id == marketplace.store_id
        assert summary.new_products_added == 1


class TestSyncAllStores:
    def setup_method(self):
        self.service = ReconciliationService()

    @pytest.mark.asyncio
    async def test_skips_unconfigured_stores(self, database, marketplace, static_feed):
        registry = FeedAdapterRegistry({"static": static_feed})

        response = await self.service.sync_all_stores(database, registry, max_concurrency=1)

        assert [r.store_id for r in response.results] == [marketplace.store_id]
        assert response.results[0].succeeded is True
        assert response.results[0].summary.new_products_added == 1

    @pytest.mark.asyncio
    async def test_failing_store_does_not_affect_others(self, database, marketplace, static_feed):
        async with database.session() as db:
            db.add(
                Store(
                    name="Unknown Feed Store",
                    street="4 Church St",
                    city="Pretoria",
                    postal_code="0002",
                    api_base_url="https://feeds.test/unknown",
                    api_key="KEY",
                    feed_provider="nonexistent",
                )
            )
        registry = FeedAdapterRegistry({"static": static_feed})

        response = await self.service.sync_all_stores(database, registry, max_concurrency=1)

        by_name = {r.store_name: r for r in response.results}
        assert by_name["Test Market Hatfield"].succeeded is True
        failed = by_name["Unknown Feed Store"]
        assert failed.succeeded is False
        assert "nonexistent" in failed.error

        async with database.session() as db:
            eggs = (
                await db.execute(
                    select(CanonicalProduct).where(CanonicalProduct.name == "Free Range Eggs")
                )
            ).scalar_one_or_none()
        assert eggs is not None
