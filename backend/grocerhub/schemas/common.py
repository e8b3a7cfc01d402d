"""
GrocerHub Backend — Shared Schemas
====================================

What:  Error envelope, health response and the [longitude, latitude] pair
       used by stores, drivers and delivery addresses.
"""

from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field


def _validate_coordinates(value: List[float]) -> List[float]:
    """Ensures a [longitude, latitude] pair within valid ranges."""
    if len(value) != 2:
        raise ValueError("Invalid coordinates format. Expected [longitude, latitude].")
    lon, lat = value
    if not -180 <= lon <= 180:
        raise ValueError(f"Longitude {lon} is out of range [-180, 180]")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} is out of range [-90, 90]")
    return [float(lon), float(lat)]


# [longitude, latitude]
Coordinates = Annotated[List[float], AfterValidator(_validate_coordinates)]


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "invalid_transition",
            "message": "Invalid status transition from 'assigned' to 'delivered'",
            "details": {"from": "assigned", "to": "delivered"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    feeds: dict = Field(
        default_factory=dict,
        description="Circuit breaker state per feed provider: closed, open, half_open",
    )
    uptime_seconds: float = Field(description="Seconds since service started")


class MessageResponse(BaseModel):
    message: str
