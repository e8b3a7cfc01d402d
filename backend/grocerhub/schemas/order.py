"""
GrocerHub Backend — Order Schemas
===================================

What:  Cart placement request, order responses, and the two status-update
       bodies (driver and admin).

Status Update Bodies:
    Driver: {"status": "picked_up"}
    Admin:  {"status": "cancelled", "driverId": "<uuid>"}   # both optional
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from grocerhub.models.order import OrderStatus, PaymentMethod
from grocerhub.schemas.common import Coordinates


class DeliveryAddress(BaseModel):
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=120)
    postal_code: str = Field(min_length=1, max_length=20)
    coordinates: Optional[Coordinates] = None


class CartItem(BaseModel):
    store_offering_id: uuid.UUID
    quantity: int = Field(ge=1)


class PlaceOrderRequest(BaseModel):
    """
    Customer cart submission.

    An empty item list is accepted by the schema so the service can report it
    with the same ValidationError envelope as other business-rule failures.
    """

    items: List[CartItem] = Field(default_factory=list)
    delivery_address: Optional[DeliveryAddress] = None
    payment_method: Optional[PaymentMethod] = None
    delivery_slot_start: Optional[datetime] = None
    delivery_slot_end: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def check_slot_order(self):
        if (
            self.delivery_slot_start is not None
            and self.delivery_slot_end is not None
            and self.delivery_slot_end <= self.delivery_slot_start
        ):
            raise ValueError("delivery_slot_end must be after delivery_slot_start")
        return self


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    line_number: int
    product_id: uuid.UUID
    store_id: uuid.UUID
    store_offering_id: uuid.UUID
    name: str
    quantity: int
    price_at_order: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    driver_id: Optional[uuid.UUID] = None
    items: List[OrderItemResponse]
    total_amount: Decimal
    delivery_fee: Decimal
    status: OrderStatus
    delivery_address: DeliveryAddress
    customer_phone: Optional[str] = None
    driver_phone: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: str
    order_date: datetime
    delivery_slot_start: Optional[datetime] = None
    delivery_slot_end: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int


class DriverStatusUpdate(BaseModel):
    status: OrderStatus


class AdminOrderStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[OrderStatus] = None
    driver_id: Optional[uuid.UUID] = Field(default=None, alias="driverId")
