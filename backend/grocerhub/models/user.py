"""User accounts and the customer / driver profiles linked to them."""

import enum
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from grocerhub.database import Base
from grocerhub.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Authentication identity. Credentials live with the auth collaborator;
    this row only carries the role and the profile it maps to.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.CUSTOMER.value)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Customer.id or Driver.id depending on role; null for admins
    profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "customers"

    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)
    # [{street, city, state_province, postal_code, country, is_default}]
    addresses: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )


class Driver(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "drivers"

    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)
    license_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    vehicle_details: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # [longitude, latitude]
    current_location: Mapped[Optional[List[float]]] = mapped_column(JSON, nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
