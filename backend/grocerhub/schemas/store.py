"""Store request/response schemas. API secrets are write-only."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from grocerhub.schemas.common import Coordinates


class StoreCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=120)
    postal_code: str = Field(min_length=1, max_length=20)
    coordinates: Optional[Coordinates] = None
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)
    operating_hours: str = Field(default="Mon-Sun 8:00 AM - 8:00 PM", max_length=120)
    api_base_url: Optional[str] = Field(default=None, max_length=1024)
    api_key: Optional[str] = Field(default=None, max_length=512)
    api_credentials: Dict[str, Any] = Field(default_factory=dict)
    feed_provider: str = Field(default="generic", max_length=50)


class StoreUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    street: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=120)
    postal_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    coordinates: Optional[Coordinates] = None
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)
    operating_hours: Optional[str] = Field(default=None, max_length=120)
    api_base_url: Optional[str] = Field(default=None, max_length=1024)
    api_key: Optional[str] = Field(default=None, max_length=512)
    api_credentials: Optional[Dict[str, Any]] = None
    feed_provider: Optional[str] = Field(default=None, max_length=50)


class StoreResponse(BaseModel):
    """Store as returned by the API: has_api_key/has_api_credentials replace the secrets."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    street: str
    city: str
    postal_code: str
    coordinates: Optional[List[float]] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    operating_hours: str
    api_base_url: Optional[str] = None
    feed_provider: str
    has_api_key: bool
    has_api_credentials: bool
    created_at: datetime
    updated_at: datetime
