"""
GrocerHub Backend — Driver Route Handlers
===========================================

Route Inventory:
    GET /api/drivers/my-orders            orders assigned to the caller
    PUT /api/drivers/orders/{id}/status   advance an assigned order
    PUT /api/drivers/location             report current [longitude, latitude]
    PUT /api/drivers/availability         set or flip availability
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.auth import Principal, require_roles
from grocerhub.database import get_db_session
from grocerhub.models.user import Role
from grocerhub.schemas.common import ErrorResponse
from grocerhub.schemas.order import DriverStatusUpdate, OrderListResponse, OrderResponse
from grocerhub.schemas.user import AvailabilityUpdate, DriverResponse, LocationUpdate
from grocerhub.services.fulfillment_service import fulfillment_service
from grocerhub.services.order_service import order_service
from grocerhub.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/drivers",
    tags=["Drivers"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not a driver", "model": ErrorResponse},
    },
)

driver_only = require_roles(Role.DRIVER)


@router.get("/my-orders", response_model=OrderListResponse, summary="List my assigned orders")
async def list_my_orders(
    principal: Principal = Depends(driver_only),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    orders = await order_service.list_driver_orders(db, principal.require_profile())
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders], total=len(orders)
    )


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={
        400: {"description": "Transition not allowed for drivers", "model": ErrorResponse},
        404: {"description": "Order not found", "model": ErrorResponse},
        409: {"description": "Order changed concurrently", "model": ErrorResponse},
    },
    summary="Advance one of my orders",
    description=(
        "Allowed: assigned → picked_up | cancelled, picked_up → out_for_delivery, "
        "out_for_delivery → delivered. Only the assigned driver may update an order."
    ),
)
async def update_order_status(
    order_id: UUID,
    body: DriverStatusUpdate,
    principal: Principal = Depends(driver_only),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await fulfillment_service.driver_update_status(
        db, order_id, principal.require_profile(), body.status
    )
    return OrderResponse.model_validate(order)


@router.put("/location", response_model=DriverResponse, summary="Update my location")
async def update_location(
    body: LocationUpdate,
    principal: Principal = Depends(driver_only),
    db: AsyncSession = Depends(get_db_session),
) -> DriverResponse:
    driver = await user_service.update_driver_location(
        db, principal.require_profile(), body.coordinates
    )
    return DriverResponse.model_validate(driver)


@router.put("/availability", response_model=DriverResponse, summary="Set or toggle my availability")
async def update_availability(
    body: AvailabilityUpdate,
    principal: Principal = Depends(driver_only),
    db: AsyncSession = Depends(get_db_session),
) -> DriverResponse:
    driver = await user_service.set_driver_availability(
        db, principal.require_profile(), body.is_available
    )
    return DriverResponse.model_validate(driver)
