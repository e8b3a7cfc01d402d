"""User, role and driver self-service schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from grocerhub.models.user import Role
from grocerhub.schemas.common import Coordinates


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    role: Role
    is_verified: bool
    profile_id: Optional[uuid.UUID] = None
    created_at: datetime


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int


class RoleUpdate(BaseModel):
    role: Role


class LocationUpdate(BaseModel):
    coordinates: Coordinates


class AvailabilityUpdate(BaseModel):
    """Omitting is_available flips the current value."""

    is_available: Optional[bool] = None


class DriverResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    license_number: str
    vehicle_details: Optional[str] = None
    is_available: bool
    current_location: Optional[List[float]] = None
