"""
GrocerHub Backend — Order SQLAlchemy Models
=============================================

What:  `orders` and `order_items`.
Who:   Written by OrderService (placement) and FulfillmentService (status);
       read by customer, driver and admin routes.

Snapshot Rules:
    - order_items copy product name and price at placement time and are
      never updated afterwards. Later catalog changes do not touch them.
    - customer_phone is copied at placement, driver_phone at assignment.
    - delivered_at is written once, the first time the order enters
      `delivered`.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grocerhub.database import Base
from grocerhub.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin, utc_now


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE_PAYMENT = "online_payment"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A customer's order, aggregated with its line items.

    Lifecycle:
        pending → confirmed → assigned → picked_up → out_for_delivery → delivered
        cancelled is reachable from the early states.
        Orders created with a driver already bound start in `assigned`.
    """

    __tablename__ = "orders"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id"), nullable=False
    )
    # Null until a driver is assigned
    driver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("drivers.id"), nullable=True, default=None
    )

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=OrderStatus.PENDING.value
    )

    # {street, city, postal_code, coordinates: [lon, lat]}
    delivery_address: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    driver_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PaymentStatus.PENDING.value
    )

    order_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    delivery_slot_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivery_slot_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        CheckConstraint("delivery_fee >= 0", name="ck_orders_fee_non_negative"),
        Index("idx_orders_customer_date", "customer_id", "order_date"),
        Index("idx_orders_driver_date", "driver_id", "order_date"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status='{self.status}', total={self.total_amount})>"


class OrderItem(UUIDPrimaryKeyMixin, Base):
    """Immutable line of an order: what was bought, where, and at what price."""

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_products.id"), nullable=False
    )
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id"), nullable=False)
    store_offering_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("store_offerings.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_order: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        CheckConstraint("price_at_order >= 0", name="ck_order_items_price_non_negative"),
        Index("idx_order_items_order_line", "order_id", "line_number", unique=True),
    )
