"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- auth: Registration and login
- rides: Ride lifecycle for riders and drivers

==============================================================================
"""

from . import health, auth, rides

__all__ = ["health", "auth", "rides"]
