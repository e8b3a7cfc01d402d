"""
GrocerHub Backend — Catalog SQLAlchemy Models
===============================================

What:  `catalog_products` (store-agnostic canonical products) and
       `store_offerings` (one store's priced, available instance of a product).
Who:   Written by the reconciliation engine and admin catalog routes; read by
       the customer product aggregation and order placement.

Table Design:
    - catalog_products is unique on (name, brand). Two stores selling
      differently-named equivalents end up as two canonical products; matching
      is exact on that pair only.
    - store_offerings is unique on (store_id, product_id): at most one offering
      per store per product. The constraint is what settles concurrent syncs.
    - price is NUMERIC(10, 2) with a non-negative CHECK.
    - last_checked_at moves only when a material field changes during sync.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grocerhub.database import Base
from grocerhub.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin, utc_now


class CanonicalProduct(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A product as customers see it, independent of which store sells it.

    Lifecycle:
        Created by reconciliation when an unknown (name, brand) appears in a
        feed, or by an admin. Never deleted by reconciliation.
    """

    __tablename__ = "catalog_products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str] = mapped_column(String(120), nullable=False, default="Generic")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # e.g. "kg", "pack", "litre"
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    # e.g. "Dairy & Milk", "Bakery"
    category: Mapped[str] = mapped_column(String(120), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    offerings: Mapped[List["StoreOffering"]] = relationship(
        back_populates="product",
        order_by="StoreOffering.price",
    )

    __table_args__ = (
        UniqueConstraint("name", "brand", name="uq_catalog_products_name_brand"),
        Index("idx_catalog_products_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<CanonicalProduct(id={self.id}, name='{self.name}', brand='{self.brand}')>"


class StoreOffering(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One store's sale of one canonical product: price, availability and the
    partner's own identifiers for it.
    """

    __tablename__ = "store_offerings"

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_products.id", ondelete="CASCADE"), nullable=False
    )
    # ID of the item in the partner store's own system
    external_product_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    external_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    last_checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    store: Mapped["Store"] = relationship(back_populates="offerings")  # noqa: F821
    product: Mapped[CanonicalProduct] = relationship(back_populates="offerings")

    __table_args__ = (
        UniqueConstraint("store_id", "product_id", name="uq_store_offerings_store_product"),
        CheckConstraint("price >= 0", name="ck_store_offerings_price_non_negative"),
        Index("idx_store_offerings_product", "product_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<StoreOffering(id={self.id}, store_id={self.store_id}, "
            f"product_id={self.product_id}, price={self.price})>"
        )
