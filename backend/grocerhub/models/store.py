"""Partner store model, including its external catalog API connection info."""

from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grocerhub.database import Base
from grocerhub.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Store(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A partner grocery store.

    Connection info:
        api_base_url + (api_key or api_credentials) makes the store syncable.
        feed_provider picks the adapter that understands the partner's API
        ("generic", "shoprite", "picknpay", "boxer", "static").
        api_key and api_credentials are secrets and never leave the service
        through response schemas.
    """

    __tablename__ = "stores"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    # [longitude, latitude]
    coordinates: Mapped[Optional[List[float]]] = mapped_column(JSON, nullable=True)

    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)
    operating_hours: Mapped[str] = mapped_column(
        String(120), nullable=False, default="Mon-Sun 8:00 AM - 8:00 PM"
    )

    api_base_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    api_credentials: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    feed_provider: Mapped[str] = mapped_column(String(50), nullable=False, default="generic")

    offerings: Mapped[List["StoreOffering"]] = relationship(  # noqa: F821
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_syncable(self) -> bool:
        """True when the store has a base URL and a key or credentials."""
        has_auth = bool(self.api_key) or bool(self.api_credentials)
        return bool(self.api_base_url) and has_auth

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @property
    def has_api_credentials(self) -> bool:
        return bool(self.api_credentials)

    def __repr__(self) -> str:
        return f"<Store(id={self.id}, name='{self.name}', provider='{self.feed_provider}')>"
