"""
==============================================================================
Authentication Schemas Module
==============================================================================

Request and response schemas for authentication endpoints.

==============================================================================
"""

from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from app.db.models import UserRole


class RegisterRequest(BaseModel):
    """Account registration request."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1, max_length=72)
    role: UserRole

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v.replace("_", "").replace("-", "").replace(".", "").isalnum():
            raise ValueError(
                "Username can only contain letters, numbers, dots, underscores, and hyphens"
            )
        return v


class LoginRequest(BaseModel):
    """Login credentials."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v


class AuthResponse(BaseModel):
    """Bearer token plus the account it belongs to."""
    success: bool = Field(default=True)
    token: str
    token_type: str = Field(default="bearer", alias="tokenType")
    expires_in: int = Field(alias="expiresIn")
    username: str
    role: UserRole

    class Config:
        populate_by_name = True


class CurrentUserInfo(BaseModel):
    """Authenticated account details."""
    id: str
    username: str
    role: UserRole
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


class CurrentUserResponse(BaseModel):
    """Current user details response."""
    success: bool = Field(default=True)
    user: CurrentUserInfo
