"""
GrocerHub Backend — Order Fulfillment State Machine
=====================================================

What:  Legal order status changes for drivers and admins, with their side
       effects (driver assignment, driver phone snapshot, delivery timestamp).
Who:   Driver and admin order status routes.

Status Graph:
    pending → confirmed → assigned → picked_up → out_for_delivery → delivered
                              └────→ cancelled

Driver Transitions (the only edges a driver may take):
    assigned         → picked_up, cancelled
    picked_up        → out_for_delivery
    out_for_delivery → delivered

Admin Authority:
    Any status, no graph check, and optionally (re)assign a driver.

Write Discipline:
    Every change is one conditional UPDATE ... WHERE id = :id AND
    status = :observed. Zero rows affected means the order moved underneath
    the caller → ConflictError. delivered_at is written as
    COALESCE(delivered_at, now) so it is only ever set once.
"""

import logging
from typing import Any, Dict, FrozenSet, Optional, Union
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from grocerhub.models.mixins import utc_now
from grocerhub.models.order import Order, OrderStatus
from grocerhub.models.user import Driver

logger = logging.getLogger(__name__)

DRIVER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.ASSIGNED: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
}


def _as_status(value: Union[str, OrderStatus]) -> Optional[OrderStatus]:
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def toggle_transition(
    current: Union[str, OrderStatus], target: Union[str, OrderStatus]
) -> OrderStatus:
    """
    Check a driver-initiated status change against the driver transition table.

    Returns:
        The target status.

    Raises:
        InvalidTransitionError: The edge is not in the table (including
        unknown status names).
    """
    source_status = _as_status(current)
    target_status = _as_status(target)
    source_name = source_status.value if source_status else str(current)
    target_name = target_status.value if target_status else str(target)

    allowed = DRIVER_TRANSITIONS.get(source_status, frozenset()) if source_status else frozenset()
    if target_status is None or target_status not in allowed:
        raise InvalidTransitionError(source=source_name, target=target_name)
    return target_status


class FulfillmentService:
    """Applies driver and admin status changes to orders."""

    async def driver_update_status(
        self,
        db: AsyncSession,
        order_id: UUID,
        driver_id: UUID,
        target: Union[str, OrderStatus],
    ) -> Order:
        """
        Move an order along the driver transition table.

        Raises:
            NotFoundError:          Unknown order
            AuthorizationError:     The order is not assigned to this driver
            InvalidTransitionError: Edge not allowed for drivers
            ConflictError:          The order changed concurrently
        """
        order = await self._get_order(db, order_id)

        if order.driver_id is None or order.driver_id != driver_id:
            raise AuthorizationError(
                message="Not authorized to update this order",
                context={"order_id": str(order_id)},
            )

        new_status = toggle_transition(order.status, target)
        await self._compare_and_set(db, order, self._status_values(new_status))

        logger.info(
            "Driver %s moved order %s to '%s'", driver_id, order_id, new_status.value
        )
        return order

    async def admin_update_status(
        self,
        db: AsyncSession,
        order_id: UUID,
        status: Optional[Union[str, OrderStatus]] = None,
        driver_id: Optional[UUID] = None,
    ) -> Order:
        """
        Set any status and/or (re)assign a driver.

        Assigning a driver copies the driver's phone number onto the order.
        Entering `delivered` stamps delivered_at unless it is already set.
        With neither argument the order is returned unchanged.

        Raises:
            NotFoundError: Unknown order or driver
            ConflictError: The order changed concurrently
        """
        order = await self._get_order(db, order_id)
        values: Dict[str, Any] = {}

        if driver_id is not None:
            driver = await db.get(Driver, driver_id)
            if driver is None:
                raise NotFoundError(resource="driver", resource_id=str(driver_id))
            values["driver_id"] = driver.id
            values["driver_phone"] = driver.phone_number

        if status is not None:
            values.update(self._status_values(OrderStatus(status)))

        if not values:
            return order

        await self._compare_and_set(db, order, values)
        logger.info(
            "Admin updated order %s: status='%s' driver=%s",
            order_id,
            order.status,
            order.driver_id,
        )
        return order

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _status_values(status: OrderStatus) -> Dict[str, Any]:
        values: Dict[str, Any] = {"status": status.value}
        if status == OrderStatus.DELIVERED:
            values["delivered_at"] = func.coalesce(Order.delivered_at, utc_now())
        return values

    async def _get_order(self, db: AsyncSession, order_id: UUID) -> Order:
        order = await db.get(Order, order_id)
        if order is None:
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    async def _compare_and_set(
        self, db: AsyncSession, order: Order, values: Dict[str, Any]
    ) -> None:
        observed = order.status
        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == observed)
            .values(updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                "Order %s changed concurrently (expected status '%s')", order.id, observed
            )
            raise ConflictError(
                context={"order_id": str(order.id), "expected_status": observed},
            )
        await db.refresh(order)


# ── Singleton Instance ────────────────────────────────────────────────────
fulfillment_service = FulfillmentService()
