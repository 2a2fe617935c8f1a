"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Error envelope
- Auth: Registration, login and current-user schemas
- Ride: Ride request body and ride representation

==============================================================================
"""

from .common import ErrorDetail, ErrorResponse
from .auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    CurrentUserInfo,
    CurrentUserResponse,
)
from .ride import RideCreate, RideResponse

__all__ = [
    # Common
    "ErrorDetail",
    "ErrorResponse",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "CurrentUserInfo",
    "CurrentUserResponse",
    # Ride
    "RideCreate",
    "RideResponse",
]
