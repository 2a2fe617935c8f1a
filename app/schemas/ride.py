"""
==============================================================================
Ride Schemas Module
==============================================================================

Request and response schemas for ride operations.

Wire fields are camelCase (pickupLocation, dropLocation, ...). The
snake_case field names are accepted on input as well.

==============================================================================
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from app.db.models import RideStatus


class RideCreate(BaseModel):
    """Ride request body."""
    pickup_location: str = Field(..., alias="pickupLocation", min_length=1, max_length=255)
    drop_location: str = Field(..., alias="dropLocation", min_length=1, max_length=255)

    class Config:
        populate_by_name = True

    @field_validator("pickup_location", "drop_location")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location cannot be blank")
        return v


class RideResponse(BaseModel):
    """Ride representation returned by every ride endpoint."""
    id: str
    user_id: str = Field(alias="userId")
    driver_id: Optional[str] = Field(default=None, alias="driverId")
    pickup_location: str = Field(alias="pickupLocation")
    drop_location: str = Field(alias="dropLocation")
    status: RideStatus
    created_at: datetime = Field(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; they are stored as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_model(cls, ride):
        return cls(
            id=ride.id,
            user_id=ride.user_id,
            driver_id=ride.driver_id,
            pickup_location=ride.pickup_location,
            drop_location=ride.drop_location,
            status=ride.status,
            created_at=ride.created_at
        )
