"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- JWT token management and password hashing
- FastAPI dependencies for authentication and authorization

Modules:
--------
- exceptions: AppException class and error factory functions
- security: SecurityManager for auth operations
- dependencies: FastAPI dependency injection functions

Usage:
------
    from app.core import AppException, get_current_user, require_driver

    from app.core import exceptions
    raise exceptions.ride_not_found(ride_id)

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)
from .security import SecurityManager, TokenStatus, get_security_manager
from .dependencies import (
    AuthenticationManager,
    get_current_user,
    require_driver,
)

__all__ = [
    # Exceptions
    "AppException",
    "register_exception_handlers",
    # Security
    "SecurityManager",
    "TokenStatus",
    "get_security_manager",
    # Dependencies
    "AuthenticationManager",
    "get_current_user",
    "require_driver",
]
