"""
GrocerHub Backend — Admin Route Handlers
==========================================

What:  Admin-only management API: users, orders, stores, catalog sync,
       canonical products and store offerings.
Who:   Admin dashboard. Every route requires the `admin` role.

Route Inventory:
    GET  /api/admin/users                          list users
    PUT  /api/admin/users/{id}/role                change a user's role
    GET  /api/admin/orders                         list all orders
    GET  /api/admin/orders/{id}                    order detail
    PUT  /api/admin/orders/{id}/status             set status / assign driver
    GET  /api/admin/stores                         list stores
    POST /api/admin/stores                         add a store
    PUT  /api/admin/stores/{id}                    update store and API info
    POST /api/admin/stores/{id}/sync-products      sync one store's catalog
    POST /api/admin/stores/sync-products           sync every syncable store
    GET  /api/admin/product-catalog                list canonical products
    POST /api/admin/product-catalog                add a canonical product
    GET  /api/admin/product-catalog/{id}           product detail
    GET  /api/admin/store-products                 list offerings
    POST /api/admin/store-products                 add an offering
    PUT  /api/admin/store-products/{id}            update an offering
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.auth import require_roles
from grocerhub.database import Database, get_database, get_db_session
from grocerhub.models.order import OrderStatus
from grocerhub.models.user import Role
from grocerhub.schemas.catalog import (
    OfferingCreate,
    OfferingResponse,
    OfferingUpdate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
)
from grocerhub.schemas.common import ErrorResponse
from grocerhub.schemas.order import AdminOrderStatusUpdate, OrderListResponse, OrderResponse
from grocerhub.schemas.store import StoreCreate, StoreResponse, StoreUpdate
from grocerhub.schemas.sync import StoreSyncResponse, SyncAllResponse
from grocerhub.schemas.user import RoleUpdate, UserListResponse, UserResponse
from grocerhub.services.catalog_service import catalog_service
from grocerhub.services.feeds import FeedAdapterRegistry, get_feed_registry
from grocerhub.services.fulfillment_service import fulfillment_service
from grocerhub.services.order_service import order_service
from grocerhub.services.reconciliation_service import reconciliation_service
from grocerhub.services.store_service import store_service
from grocerhub.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_roles(Role.ADMIN))],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not an admin", "model": ErrorResponse},
    },
)


# ── Users ─────────────────────────────────────────────────────────────────

@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    role: Optional[Role] = Query(default=None, description="Only users with this role"),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    users = await user_service.list_users(db, role=role)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users], total=len(users)
    )


@router.put(
    "/users/{user_id}/role",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Change a user's role",
)
async def update_user_role(
    user_id: UUID,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.update_role(db, user_id, body.role)
    return UserResponse.model_validate(user)


# ── Orders ────────────────────────────────────────────────────────────────

@router.get("/orders", response_model=OrderListResponse, summary="List all orders")
async def list_orders(
    order_status: Optional[OrderStatus] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    orders = await order_service.list_orders(db, status=order_status)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders], total=len(orders)
    )


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"description": "Order not found", "model": ErrorResponse}},
    summary="Order detail",
)
async def get_order(order_id: UUID, db: AsyncSession = Depends(get_db_session)) -> OrderResponse:
    order = await order_service.get_order(db, order_id)
    return OrderResponse.model_validate(order)


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={
        404: {"description": "Order or driver not found", "model": ErrorResponse},
        409: {"description": "Order changed concurrently", "model": ErrorResponse},
    },
    summary="Set an order's status and/or assign a driver",
    description=(
        "Admins may set any status without transition checks. Supplying driverId "
        "assigns that driver and copies their phone number onto the order."
    ),
)
async def update_order_status(
    order_id: UUID,
    body: AdminOrderStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await fulfillment_service.admin_update_status(
        db, order_id, status=body.status, driver_id=body.driver_id
    )
    return OrderResponse.model_validate(order)


# ── Stores ────────────────────────────────────────────────────────────────

@router.get("/stores", response_model=List[StoreResponse], summary="List stores")
async def list_stores(db: AsyncSession = Depends(get_db_session)) -> List[StoreResponse]:
    stores = await store_service.list_stores(db)
    return [StoreResponse.model_validate(s) for s in stores]


@router.post(
    "/stores",
    response_model=StoreResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Duplicate store", "model": ErrorResponse}},
    summary="Add a store",
)
async def create_store(
    body: StoreCreate, db: AsyncSession = Depends(get_db_session)
) -> StoreResponse:
    store = await store_service.create_store(db, body)
    return StoreResponse.model_validate(store)


@router.post(
    "/stores/sync-products",
    response_model=SyncAllResponse,
    summary="Synchronize every syncable store",
    description=(
        "Runs a catalog sync for every store with API details, several stores at a "
        "time. Each store succeeds or fails on its own; failures are reported per store."
    ),
)
async def sync_all_stores(
    database: Database = Depends(get_database),
    registry: FeedAdapterRegistry = Depends(get_feed_registry),
) -> SyncAllResponse:
    return await reconciliation_service.sync_all_stores(database, registry)


@router.put(
    "/stores/{store_id}",
    response_model=StoreResponse,
    responses={
        404: {"description": "Store not found", "model": ErrorResponse},
        409: {"description": "Duplicate store", "model": ErrorResponse},
    },
    summary="Update a store, including its API connection info",
)
async def update_store(
    store_id: UUID,
    body: StoreUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> StoreResponse:
    store = await store_service.update_store(db, store_id, body)
    return StoreResponse.model_validate(store)


@router.post(
    "/stores/{store_id}/sync-products",
    response_model=StoreSyncResponse,
    responses={
        400: {"description": "Store has no API details", "model": ErrorResponse},
        404: {"description": "Store not found", "model": ErrorResponse},
        500: {"description": "Feed could not be fetched", "model": ErrorResponse},
        503: {"description": "Feed circuit breaker open", "model": ErrorResponse},
    },
    summary="Synchronize one store's product catalog",
)
async def sync_store_products(
    store_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    registry: FeedAdapterRegistry = Depends(get_feed_registry),
) -> StoreSyncResponse:
    store, summary = await reconciliation_service.sync_store_by_id(db, store_id, registry)
    return StoreSyncResponse(
        message=f"Products synchronized from {store.name}",
        summary=summary,
    )


# ── Canonical products ────────────────────────────────────────────────────

@router.get("/product-catalog", response_model=ProductListResponse, summary="List catalog products")
async def list_products(db: AsyncSession = Depends(get_db_session)) -> ProductListResponse:
    products = await catalog_service.list_products(db)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products], total=len(products)
    )


@router.post(
    "/product-catalog",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Same name and brand exists", "model": ErrorResponse}},
    summary="Add a catalog product",
)
async def create_product(
    body: ProductCreate, db: AsyncSession = Depends(get_db_session)
) -> ProductResponse:
    product = await catalog_service.create_product(db, body)
    return ProductResponse.model_validate(product)


@router.get(
    "/product-catalog/{product_id}",
    response_model=ProductResponse,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Catalog product detail",
)
async def get_product(
    product_id: UUID, db: AsyncSession = Depends(get_db_session)
) -> ProductResponse:
    product = await catalog_service.get_product(db, product_id)
    return ProductResponse.model_validate(product)


# ── Store offerings ───────────────────────────────────────────────────────

@router.get("/store-products", response_model=List[OfferingResponse], summary="List store offerings")
async def list_offerings(
    store_id: Optional[UUID] = Query(default=None, description="Only this store's offerings"),
    db: AsyncSession = Depends(get_db_session),
) -> List[OfferingResponse]:
    offerings = await catalog_service.list_offerings(db, store_id=store_id)
    return [OfferingResponse.model_validate(o) for o in offerings]


@router.post(
    "/store-products",
    response_model=OfferingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Store or product not found", "model": ErrorResponse},
        409: {"description": "Store already offers the product", "model": ErrorResponse},
    },
    summary="Add a store offering",
)
async def create_offering(
    body: OfferingCreate, db: AsyncSession = Depends(get_db_session)
) -> OfferingResponse:
    offering = await catalog_service.create_offering(db, body)
    return OfferingResponse.model_validate(offering)


@router.put(
    "/store-products/{offering_id}",
    response_model=OfferingResponse,
    responses={404: {"description": "Offering not found", "model": ErrorResponse}},
    summary="Update a store offering's price, availability or identifiers",
)
async def update_offering(
    offering_id: UUID,
    body: OfferingUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> OfferingResponse:
    offering = await catalog_service.update_offering(db, offering_id, body)
    return OfferingResponse.model_validate(offering)
