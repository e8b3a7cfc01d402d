"""Partner store management for the admin API."""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from grocerhub.exceptions import ConflictError, NotFoundError
from grocerhub.models.store import Store
from grocerhub.schemas.store import StoreCreate, StoreUpdate

logger = logging.getLogger(__name__)


class StoreService:
    async def list_stores(self, db: AsyncSession) -> List[Store]:
        result = await db.execute(select(Store).order_by(Store.name))
        return list(result.scalars().all())

    async def get_store(self, db: AsyncSession, store_id: UUID) -> Store:
        store = await db.get(Store, store_id)
        if store is None:
            raise NotFoundError(resource="store", resource_id=str(store_id))
        return store

    async def create_store(self, db: AsyncSession, data: StoreCreate) -> Store:
        store = Store(**data.model_dump())
        await self._flush_unique(db, store, data.name)
        logger.info("Store created: '%s' (provider=%s)", store.name, store.feed_provider)
        return store

    async def update_store(self, db: AsyncSession, store_id: UUID, data: StoreUpdate) -> Store:
        """
        Partial update. Connection fields (api_base_url, api_key,
        api_credentials) may be cleared by sending null; other fields ignore null.
        """
        store = await self.get_store(db, store_id)
        clearable = {"api_base_url", "api_key", "api_credentials", "coordinates"}
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in clearable:
                continue
            if field == "api_credentials" and value is None:
                value = {}
            setattr(store, field, value)
        await self._flush_unique(db, store, store.name)
        logger.info("Store updated: '%s'", store.name)
        return store

    @staticmethod
    async def _flush_unique(db: AsyncSession, store: Store, name: str) -> None:
        try:
            async with db.begin_nested():
                db.add(store)
        except IntegrityError as e:
            raise ConflictError(
                message=f"A store with the name, email or phone of '{name}' already exists.",
                context={"name": name},
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
store_service = StoreService()
