"""
GrocerHub Backend — Customer Route Handlers
=============================================

What:  Public aggregated product listing and the customer's own orders.

Route Inventory:
    GET  /api/customers/products        products with per-store offerings (public)
    POST /api/customers/orders          place an order from a cart
    GET  /api/customers/orders          the caller's orders, newest first
    GET  /api/customers/orders/{id}     one of the caller's orders
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.auth import Principal, require_roles
from grocerhub.database import get_db_session
from grocerhub.models.user import Role
from grocerhub.schemas.catalog import AggregatedProduct
from grocerhub.schemas.common import ErrorResponse
from grocerhub.schemas.order import OrderListResponse, OrderResponse, PlaceOrderRequest
from grocerhub.services.catalog_service import catalog_service
from grocerhub.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["Customers"])

customer_only = require_roles(Role.CUSTOMER)


@router.get(
    "/products",
    response_model=List[AggregatedProduct],
    summary="Browse products across all partner stores",
    description=(
        "Every catalog product with the stores that sell it, each offering's price "
        "and availability, cheapest first. Products no store sells yet are included "
        "with an empty offering list unless available_only is set."
    ),
)
async def list_products(
    category: Optional[str] = Query(default=None, description="Exact category name"),
    available_only: bool = Query(default=False, description="Hide unavailable offerings"),
    db: AsyncSession = Depends(get_db_session),
) -> List[AggregatedProduct]:
    return await catalog_service.list_aggregated_products(
        db, category=category, available_only=available_only
    )


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields or unavailable item", "model": ErrorResponse},
        404: {"description": "Customer profile not found", "model": ErrorResponse},
    },
    summary="Place an order",
)
async def place_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(customer_only),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await order_service.place_order(db, principal.require_profile(), body)
    return OrderResponse.model_validate(order)


@router.get("/orders", response_model=OrderListResponse, summary="List my orders")
async def list_my_orders(
    principal: Principal = Depends(customer_only),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    orders = await order_service.list_customer_orders(db, principal.require_profile())
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders], total=len(orders)
    )


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={
        403: {"description": "Order belongs to another customer", "model": ErrorResponse},
        404: {"description": "Order not found", "model": ErrorResponse},
    },
    summary="Get one of my orders",
)
async def get_my_order(
    order_id: UUID,
    principal: Principal = Depends(customer_only),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await order_service.get_customer_order(db, order_id, principal.require_profile())
    return OrderResponse.model_validate(order)
