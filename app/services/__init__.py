"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes implementing business logic.

This package provides:
- AuthService: Registration, login and token issuance
- RideService: Ride lifecycle (request, accept, complete) and ride queries

Architecture Pattern: Service Layer
----------------------------------
    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Business Logic
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │   Repository    │  ← Data Access (via ORM)
    └─────────────────┘

Usage:
------
    from app.services import RideService

    service = RideService(db_session)
    ride = service.request_ride(user.id, "Main St", "Airport")

==============================================================================
"""

from .auth_service import AuthService
from .ride_service import RideService

__all__ = [
    "AuthService",
    "RideService",
]
