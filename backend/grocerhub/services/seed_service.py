"""
Demo data for development.

Seeds one admin, one customer and one driver with their profiles, the three
partner stores, two catalog products with an offering each, and one order
already assigned to the driver. The seeded stores use the `static` feed
provider so a catalog sync works without reaching a partner API.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.order import Order, OrderItem, PaymentMethod
from grocerhub.models.store import Store
from grocerhub.models.user import Customer, Driver, Role, User
from grocerhub.schemas.order import CartItem, DeliveryAddress, PlaceOrderRequest
from grocerhub.services.order_service import order_service

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = {
    "street": "123 Pretorius Street",
    "city": "Pretoria",
    "state_province": "Gauteng",
    "postal_code": "0002",
    "country": "South Africa",
    "is_default": True,
}


@dataclass
class SeedResult:
    admin: User
    customer: Customer
    driver: Driver
    order: Order


class SeedService:
    async def destroy_data(self, db: AsyncSession) -> None:
        """Deletes every row, children before parents."""
        for model in (OrderItem, Order, StoreOffering, CanonicalProduct, Store, Customer, Driver, User):
            await db.execute(delete(model))
        await db.flush()
        logger.info("All existing data cleared")

    async def import_data(self, db: AsyncSession) -> SeedResult:
        await self.destroy_data(db)

        admin_user = User(email="admin@example.com", role=Role.ADMIN.value, is_verified=True)
        customer_user = User(email="customer@example.com", role=Role.CUSTOMER.value, is_verified=True)
        driver_user = User(email="driver@example.com", role=Role.DRIVER.value, is_verified=True)
        db.add_all([admin_user, customer_user, driver_user])
        await db.flush()

        customer = Customer(
            first_name="John",
            last_name="Doe",
            phone_number="+27712345678",
            addresses=[DEFAULT_ADDRESS],
            user_id=customer_user.id,
        )
        driver = Driver(
            first_name="Sipho",
            last_name="Dlamini",
            phone_number="+27601112222",
            license_number="DLA87654321",
            vehicle_details="White Toyota Quantum, GP 123-456",
            is_available=True,
            current_location=[28.21, -25.75],
            user_id=driver_user.id,
        )
        db.add_all([customer, driver])
        await db.flush()
        customer_user.profile_id = customer.id
        driver_user.profile_id = driver.id

        shoprite = Store(
            name="Shoprite Pretoria North",
            street="Pretoria North Main Rd",
            city="Pretoria",
            postal_code="0182",
            coordinates=[28.1878, -25.7533],
            contact_email="pretoria.north@shoprite.co.za",
            contact_phone="+27125467890",
            api_base_url="https://mock-shoprite-api.com/v1",
            api_key="SHOPRITE_API_KEY_123",
            feed_provider="static",
        )
        pnp = Store(
            name="Pick 'n Pay Brooklyn Mall",
            street="Cnr Fehrsen & Middle St",
            city="Pretoria",
            postal_code="0181",
            coordinates=[28.2324, -25.7865],
            contact_email="brooklyn@pnp.co.za",
            contact_phone="+27123456789",
            api_base_url="https://mock-pnp-api.com/v2",
            api_key="PNP_API_KEY_456",
            feed_provider="static",
        )
        boxer = Store(
            name="Boxer Superstores Sunnyside",
            street="283 Celliers St",
            city="Pretoria",
            postal_code="0002",
            coordinates=[28.2045, -25.7650],
            contact_email="sunnyside@boxer.co.za",
            contact_phone="+27129876543",
            api_base_url="https://mock-boxer-api.com/v1",
            api_key="BOXER_API_KEY_789",
            feed_provider="static",
        )
        db.add_all([shoprite, pnp, boxer])

        milk = CanonicalProduct(
            name="Full Cream Milk",
            brand="Clover",
            description="Long life full cream milk, 1 litre carton.",
            unit="litre",
            category="Dairy & Milk",
            image_url="https://placehold.co/150x150/000000/FFFFFF?text=Milk",
        )
        bread = CanonicalProduct(
            name="White Bread (Large)",
            brand="Albany",
            description="Standard large loaf of white bread.",
            unit="loaf",
            category="Bakery",
            image_url="https://placehold.co/150x150/000000/FFFFFF?text=Bread",
        )
        db.add_all([milk, bread])
        await db.flush()

        shoprite_milk = StoreOffering(
            store_id=shoprite.id,
            product_id=milk.id,
            external_product_id="SR12345_initial",
            price=Decimal("22.99"),
            is_available=True,
        )
        boxer_bread = StoreOffering(
            store_id=boxer.id,
            product_id=bread.id,
            external_product_id="BX001122_initial",
            price=Decimal("18.00"),
            is_available=True,
        )
        db.add_all([shoprite_milk, boxer_bread])
        await db.flush()

        order = await order_service.place_order(
            db,
            customer.id,
            PlaceOrderRequest(
                items=[
                    CartItem(store_offering_id=shoprite_milk.id, quantity=2),
                    CartItem(store_offering_id=boxer_bread.id, quantity=1),
                ],
                delivery_address=DeliveryAddress(
                    street="123 Pretorius Street",
                    city="Pretoria",
                    postal_code="0002",
                    coordinates=[28.2167, -25.7461],
                ),
                payment_method=PaymentMethod.CARD,
                notes="Please leave at the front desk.",
            ),
            driver_id=driver.id,
        )

        logger.info(
            "Seeded 3 users, 3 stores, 2 products and order %s (status=%s)", order.id, order.status
        )
        return SeedResult(admin=admin_user, customer=customer, driver=driver, order=order)


# ── Singleton Instance ────────────────────────────────────────────────────
seed_service = SeedService()
