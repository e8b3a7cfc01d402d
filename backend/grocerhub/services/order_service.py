"""
GrocerHub Backend — Order Service
===================================

What:  Order placement (cart → priced, snapshotted order) and order reads for
       customers, drivers and admins.
Who:   Customer, driver and admin routes; the seeding script.

Placement Flow (POST /api/customers/orders):
    1. Required fields: at least one item, a delivery address, a payment method
    2. Resolve the customer profile
    3. Resolve every cart line to its store offering; any missing or
       unavailable offering rejects the whole cart before anything is written
    4. Snapshot product name and current price into each line
    5. total = Σ(quantity × price) + delivery fee, rounded to cents
    6. payment_status: pending for cash, paid otherwise

Orders placed with a driver already bound (seeding) start in `assigned`
and carry the driver's phone number.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from grocerhub.config import settings
from grocerhub.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from grocerhub.models.catalog import StoreOffering
from grocerhub.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from grocerhub.models.user import Customer, Driver
from grocerhub.schemas.order import PlaceOrderRequest

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
        - place_order():          cart validation, price snapshot, totals
        - list_customer_orders(): a customer's own orders, newest first
        - get_customer_order():   one order, owner only
        - list_driver_orders():   orders assigned to a driver
        - list_orders() / get_order(): admin reads
    """

    async def place_order(
        self,
        db: AsyncSession,
        customer_id: UUID,
        request: PlaceOrderRequest,
        driver_id: Optional[UUID] = None,
        delivery_fee: Optional[Decimal] = None,
    ) -> Order:
        """
        Create an order from a cart.

        Args:
            db:           Database session
            customer_id:  Customer profile ID of the caller
            request:      Cart, address, payment method, optional slot and notes
            driver_id:    Bind a driver at creation; the order starts `assigned`
            delivery_fee: Override of the configured flat fee

        Returns:
            The persisted Order with its items

        Raises:
            ValidationError: Missing fields, or an unknown/unavailable offering
            NotFoundError:   Unknown customer or driver profile
        """
        if not request.items:
            raise ValidationError(message="No order items", field="items")
        if request.delivery_address is None:
            raise ValidationError(message="Delivery address is required", field="delivery_address")
        if request.payment_method is None:
            raise ValidationError(message="Payment method is required", field="payment_method")

        customer = await db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(resource="customer", resource_id=str(customer_id))

        driver: Optional[Driver] = None
        if driver_id is not None:
            driver = await db.get(Driver, driver_id)
            if driver is None:
                raise NotFoundError(resource="driver", resource_id=str(driver_id))

        lines: List[OrderItem] = []
        subtotal = Decimal("0")
        for line_number, cart_item in enumerate(request.items, start=1):
            offering = await self._load_offering(db, cart_item.store_offering_id)
            if offering is None:
                raise ValidationError(
                    message=f"Product offering with ID {cart_item.store_offering_id} not found",
                    field="items",
                    context={"store_offering_id": str(cart_item.store_offering_id)},
                )
            if not offering.is_available:
                raise ValidationError(
                    message=(
                        f"Product {offering.product.name} is not available "
                        f"at {offering.store.name}"
                    ),
                    field="items",
                    context={
                        "store_offering_id": str(offering.id),
                        "store_id": str(offering.store_id),
                    },
                )

            price = Decimal(offering.price).quantize(CENT)
            subtotal += price * cart_item.quantity
            lines.append(
                OrderItem(
                    line_number=line_number,
                    product_id=offering.product_id,
                    store_id=offering.store_id,
                    store_offering_id=offering.id,
                    name=offering.product.name,
                    quantity=cart_item.quantity,
                    price_at_order=price,
                )
            )

        fee = settings.delivery_fee if delivery_fee is None else delivery_fee
        total = (subtotal + fee).quantize(CENT, rounding=ROUND_HALF_UP)
        payment_method = PaymentMethod(request.payment_method)
        payment_status = (
            PaymentStatus.PENDING if payment_method == PaymentMethod.CASH else PaymentStatus.PAID
        )

        order = Order(
            customer_id=customer.id,
            driver_id=driver.id if driver else None,
            driver_phone=driver.phone_number if driver else None,
            status=(OrderStatus.ASSIGNED if driver else OrderStatus.PENDING).value,
            total_amount=total,
            delivery_fee=Decimal(fee).quantize(CENT),
            delivery_address=request.delivery_address.model_dump(),
            customer_phone=customer.phone_number,
            payment_method=payment_method.value,
            payment_status=payment_status.value,
            delivery_slot_start=request.delivery_slot_start,
            delivery_slot_end=request.delivery_slot_end,
            notes=request.notes,
            items=lines,
        )

        try:
            db.add(order)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to persist order for customer %s: %s", customer_id, str(e))
            raise DatabaseError(
                message="Could not place the order. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info(
            "Order %s placed by customer %s: %d line(s), total %s",
            order.id,
            customer_id,
            len(lines),
            total,
        )
        return order

    async def list_customer_orders(self, db: AsyncSession, customer_id: UUID) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc())
        )
        return list(result.scalars().all())

    async def get_customer_order(
        self, db: AsyncSession, order_id: UUID, customer_id: UUID
    ) -> Order:
        """Raises NotFoundError for unknown orders, AuthorizationError for other customers' orders."""
        order = await self.get_order(db, order_id)
        if order.customer_id != customer_id:
            raise AuthorizationError(
                message="Not authorized to view this order",
                context={"order_id": str(order_id)},
            )
        return order

    async def list_driver_orders(self, db: AsyncSession, driver_id: UUID) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.driver_id == driver_id)
            .order_by(Order.order_date.desc())
        )
        return list(result.scalars().all())

    async def list_orders(
        self, db: AsyncSession, status: Optional[OrderStatus] = None
    ) -> List[Order]:
        query = select(Order).order_by(Order.order_date.desc())
        if status is not None:
            query = query.where(Order.status == OrderStatus(status).value)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_order(self, db: AsyncSession, order_id: UUID) -> Order:
        order = await db.get(Order, order_id)
        if order is None:
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    @staticmethod
    async def _load_offering(db: AsyncSession, offering_id: UUID) -> Optional[StoreOffering]:
        result = await db.execute(
            select(StoreOffering)
            .options(joinedload(StoreOffering.product), joinedload(StoreOffering.store))
            .where(StoreOffering.id == offering_id)
        )
        return result.scalar_one_or_none()


# ── Singleton Instance ────────────────────────────────────────────────────
order_service = OrderService()
