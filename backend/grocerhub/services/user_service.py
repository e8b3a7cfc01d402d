"""
User administration and driver self-service (location, availability).
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.exceptions import NotFoundError
from grocerhub.models.user import Driver, Role, User

logger = logging.getLogger(__name__)


class UserService:
    async def list_users(self, db: AsyncSession, role: Optional[Role] = None) -> List[User]:
        query = select(User).order_by(User.created_at)
        if role is not None:
            query = query.where(User.role == Role(role).value)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def update_role(self, db: AsyncSession, user_id: UUID, role: Role) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        previous = user.role
        user.role = Role(role).value
        await db.flush()
        logger.info("User %s role changed from '%s' to '%s'", user_id, previous, user.role)
        return user

    async def get_driver(self, db: AsyncSession, driver_id: UUID) -> Driver:
        driver = await db.get(Driver, driver_id)
        if driver is None:
            raise NotFoundError(resource="driver", resource_id=str(driver_id))
        return driver

    async def update_driver_location(
        self, db: AsyncSession, driver_id: UUID, coordinates: List[float]
    ) -> Driver:
        """Stores the driver's current [longitude, latitude]."""
        driver = await self.get_driver(db, driver_id)
        driver.current_location = [float(coordinates[0]), float(coordinates[1])]
        await db.flush()
        logger.debug("Driver %s location updated to %s", driver_id, driver.current_location)
        return driver

    async def set_driver_availability(
        self, db: AsyncSession, driver_id: UUID, is_available: Optional[bool] = None
    ) -> Driver:
        """Sets availability, or flips it when `is_available` is None."""
        driver = await self.get_driver(db, driver_id)
        driver.is_available = (not driver.is_available) if is_available is None else is_available
        await db.flush()
        logger.info("Driver %s availability set to %s", driver_id, driver.is_available)
        return driver


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
