"""
GrocerHub Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite) with all
       tables created, so services run real SQL without a PostgreSQL server.

Fixture Hierarchy:
    database            fresh Database handle with tables created
    ├── db              open AsyncSession for service-level tests
    ├── marketplace     committed sample data (users, stores, catalog)
    │   └── tokens      bearer tokens for the admin, customer and driver
    └── client          HTTPX AsyncClient talking to create_app() via ASGI
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict
from uuid import UUID, uuid4

# Override settings for testing BEFORE any grocerhub imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_TOKENS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
# One shared in-memory connection: stores are synchronized one at a time
os.environ["SYNC_MAX_CONCURRENCY"] = "1"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from grocerhub.auth import Principal, StaticTokenVerifier
from grocerhub.database import Database
from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.store import Store
from grocerhub.models.user import Customer, Driver, Role, User
from grocerhub.schemas.sync import ExternalProduct
from grocerhub.services.feeds import FeedAdapterRegistry, StaticFeedAdapter

# Bearer token per test caller; see the `auth_headers` fixture
ADMIN_TOKEN = "test-admin-token"
CUSTOMER_TOKEN = "test-customer-token"
OTHER_CUSTOMER_TOKEN = "test-other-customer-token"
DRIVER_TOKEN = "test-driver-token"
OTHER_DRIVER_TOKEN = "test-other-driver-token"

CALLER_TOKENS = {
    "admin": ADMIN_TOKEN,
    "customer": CUSTOMER_TOKEN,
    "other_customer": OTHER_CUSTOMER_TOKEN,
    "driver": DRIVER_TOKEN,
    "other_driver": OTHER_DRIVER_TOKEN,
}


@dataclass
class Marketplace:
    """IDs of the committed sample rows."""

    admin_user_id: UUID
    customer_user_id: UUID
    customer_id: UUID
    other_customer_id: UUID
    driver_user_id: UUID
    driver_id: UUID
    other_driver_id: UUID
    store_id: UUID
    unsynced_store_id: UUID
    milk_id: UUID
    bread_id: UUID
    milk_offering_id: UUID
    bread_offering_id: UUID
    unavailable_offering_id: UUID


def external_product(external_id: str, name: str, price: str, **overrides) -> ExternalProduct:
    """Feed item with sensible defaults for reconciliation tests."""
    fields = {
        "external_id": external_id,
        "name": name,
        "price": Decimal(price),
        "brand": "Testbrand",
        "unit": "each",
        "category": "Pantry",
        "available": True,
    }
    fields.update(overrides)
    return ExternalProduct(**fields)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """
    Fresh in-memory database per test.

    StaticPool keeps a single connection, so every session of the test sees
    the same data.
    """
    db = Database(url="sqlite+aiosqlite:///:memory:", echo=False)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db(database):
    """An open session; tests flush but the transaction is never committed."""
    async with database.session_factory() as session:
        yield session
        await session.rollback()


async def _build_marketplace(database: Database) -> Marketplace:
    async with database.session() as session:
        admin = User(email="admin@test.example", role=Role.ADMIN.value, is_verified=True)
        customer_user = User(email="customer@test.example", role=Role.CUSTOMER.value)
        other_customer_user = User(email="other@test.example", role=Role.CUSTOMER.value)
        driver_user = User(email="driver@test.example", role=Role.DRIVER.value)
        other_driver_user = User(email="driver2@test.example", role=Role.DRIVER.value)
        session.add_all([admin, customer_user, other_customer_user, driver_user, other_driver_user])
        await session.flush()

        customer = Customer(
            first_name="Thandi",
            last_name="Mokoena",
            phone_number="+27710000001",
            addresses=[],
            user_id=customer_user.id,
        )
        other_customer = Customer(
            first_name="Pieter",
            last_name="Botha",
            phone_number="+27710000002",
            addresses=[],
            user_id=other_customer_user.id,
        )
        driver = Driver(
            first_name="Lerato",
            last_name="Nkosi",
            phone_number="+27600000001",
            license_number="LIC-0001",
            user_id=driver_user.id,
        )
        other_driver = Driver(
            first_name="Johan",
            last_name="Smit",
            phone_number="+27600000002",
            license_number="LIC-0002",
            user_id=other_driver_user.id,
        )
        session.add_all([customer, other_customer, driver, other_driver])
        await session.flush()
        customer_user.profile_id = customer.id
        other_customer_user.profile_id = other_customer.id
        driver_user.profile_id = driver.id
        other_driver_user.profile_id = other_driver.id

        store = Store(
            name="Test Market Hatfield",
            street="1 Burnett St",
            city="Pretoria",
            postal_code="0083",
            api_base_url="https://feeds.test/hatfield",
            api_key="TEST_KEY",
            feed_provider="static",
        )
        unsynced_store = Store(
            name="Corner Cafe",
            street="2 Park St",
            city="Pretoria",
            postal_code="0083",
            feed_provider="static",
        )
        milk = CanonicalProduct(
            name="Full Cream Milk", brand="Clover", unit="litre", category="Dairy & Milk"
        )
        bread = CanonicalProduct(
            name="White Bread (Large)", brand="Albany", unit="loaf", category="Bakery"
        )
        sugar = CanonicalProduct(name="White Sugar", brand="Huletts", unit="kg", category="Baking")
        session.add_all([store, unsynced_store, milk, bread, sugar])
        await session.flush()

        milk_offering = StoreOffering(
            store_id=store.id,
            product_id=milk.id,
            external_product_id="MILK-1",
            price=Decimal("22.99"),
            is_available=True,
        )
        bread_offering = StoreOffering(
            store_id=store.id,
            product_id=bread.id,
            external_product_id="BREAD-1",
            price=Decimal("18.00"),
            is_available=True,
        )
        sugar_offering = StoreOffering(
            store_id=store.id,
            product_id=sugar.id,
            external_product_id="SUGAR-1",
            price=Decimal("55.00"),
            is_available=False,
        )
        session.add_all([milk_offering, bread_offering, sugar_offering])
        await session.flush()

        return Marketplace(
            admin_user_id=admin.id,
            customer_user_id=customer_user.id,
            customer_id=customer.id,
            other_customer_id=other_customer.id,
            driver_user_id=driver_user.id,
            driver_id=driver.id,
            other_driver_id=other_driver.id,
            store_id=store.id,
            unsynced_store_id=unsynced_store.id,
            milk_id=milk.id,
            bread_id=bread.id,
            milk_offering_id=milk_offering.id,
            bread_offering_id=bread_offering.id,
            unavailable_offering_id=sugar_offering.id,
        )


@pytest_asyncio.fixture
async def marketplace(database) -> Marketplace:
    """Committed sample data shared by service and route tests."""
    return await _build_marketplace(database)


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def tokens(marketplace) -> Dict[str, Principal]:
    return {
        ADMIN_TOKEN: Principal(user_id=marketplace.admin_user_id, role=Role.ADMIN),
        CUSTOMER_TOKEN: Principal(
            user_id=marketplace.customer_user_id,
            role=Role.CUSTOMER,
            profile_id=marketplace.customer_id,
        ),
        OTHER_CUSTOMER_TOKEN: Principal(
            user_id=uuid4(), role=Role.CUSTOMER, profile_id=marketplace.other_customer_id
        ),
        DRIVER_TOKEN: Principal(
            user_id=marketplace.driver_user_id,
            role=Role.DRIVER,
            profile_id=marketplace.driver_id,
        ),
        OTHER_DRIVER_TOKEN: Principal(
            user_id=uuid4(), role=Role.DRIVER, profile_id=marketplace.other_driver_id
        ),
    }


@pytest.fixture
def static_feed() -> StaticFeedAdapter:
    """Feed adapter serving the test store's catalog; tests may replace feeds."""
    return StaticFeedAdapter(
        feeds={
            "Test Market Hatfield": [
                external_product("MILK-1", "Full Cream Milk", "22.99", brand="Clover"),
                external_product("EGGS-1", "Free Range Eggs", "42.50", unit="dozen"),
            ]
        }
    )


@pytest.fixture
def auth_headers():
    """
    Usage:
        await client.get("/api/admin/stores", headers=auth_headers("admin"))
    """

    def make(caller: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {CALLER_TOKENS[caller]}"}

    return make


@pytest.fixture
def make_item():
    """Factory for feed items; see external_product()."""
    return external_product


@pytest_asyncio.fixture
async def client(database, tokens, static_feed):
    """
    HTTPX AsyncClient configured to talk to a fully wired app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from grocerhub.main import create_app

    app = create_app(
        database=database,
        token_verifier=StaticTokenVerifier(tokens),
        feed_registry=FeedAdapterRegistry({"static": static_feed}),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
