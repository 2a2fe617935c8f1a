"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for authentication and authorization.

This module implements:
- AuthenticationManager: Resolves a bearer token to a User (the principal)
- FastAPI dependencies for route protection
- Role-based access control

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │   get_db()      │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │get_current_user │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │ require_driver  │
                    └─────────────────┘

The resolved User is handed to services as an explicit argument. Nothing
below the API layer reads request-scoped state.

Usage Examples:
--------------
    @router.get("/user/rides")
    async def my_rides(user: User = Depends(get_current_user)):
        ...

    @router.get("/driver/rides/requests")
    async def pending(driver: User = Depends(require_driver)):
        ...

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models import User, UserRole
from app.db.repositories import UserRepository
from app.core.security import SecurityManager, TokenStatus, get_security_manager
from app.core import exceptions


# Module logger
logger = logging.getLogger(__name__)

# HTTP Bearer security scheme for Swagger UI
security_scheme = HTTPBearer(auto_error=False)


class AuthenticationManager:
    """
    Manages user authentication and authorization.

    Attributes:
        _security: SecurityManager instance for token operations
        _db: Database session for user queries

    Example:
        >>> auth = AuthenticationManager(security_manager, db_session)
        >>> user = await auth.get_current_user(credentials)
        >>> auth.require_role(user, UserRole.DRIVER)
    """

    def __init__(
        self,
        security: SecurityManager,
        db: Optional[Session]
    ) -> None:
        self._security = security
        self._db = db

    # =========================================================================
    # TOKEN EXTRACTION
    # =========================================================================

    def extract_token_from_header(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> str:
        """
        Extract JWT token from HTTP Authorization header.

        Raises:
            AppException: If no credentials provided
        """
        if not credentials:
            logger.debug("No authorization credentials provided")
            raise exceptions.token_invalid()

        return credentials.credentials

    # =========================================================================
    # USER AUTHENTICATION
    # =========================================================================

    async def authenticate_from_token(self, token: str) -> User:
        """
        Authenticate user from JWT token.

        1. Verifies the token signature, expiration and type
        2. Extracts the user ID from the 'sub' claim
        3. Loads the user from the database

        Raises:
            AppException: If token is invalid, expired, or user not found
        """
        status, payload = self._security.decode_token(token)

        if status == TokenStatus.EXPIRED:
            raise exceptions.token_expired()

        if payload is None:
            raise exceptions.token_invalid()

        user_id = payload.get("sub")

        if not user_id:
            logger.warning("Token payload missing 'sub' claim")
            raise exceptions.token_invalid()

        user = UserRepository(self._db).get_by_id(user_id)

        if not user:
            logger.warning(f"User not found for token: {user_id}")
            raise exceptions.user_not_found(user_id)

        logger.debug(f"User authenticated: {user.username}")
        return user

    async def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> User:
        """Get current authenticated user from the Authorization header."""
        token = self.extract_token_from_header(credentials)
        return await self.authenticate_from_token(token)

    # =========================================================================
    # ROLE-BASED ACCESS CONTROL
    # =========================================================================

    def require_role(self, user: User, *allowed_roles: UserRole) -> User:
        """
        Verify user has one of the allowed roles.

        Raises:
            AppException: If user doesn't have required role
        """
        if user.role not in allowed_roles:
            logger.warning(
                f"Role check failed for {user.username}: "
                f"has {user.role.value}, needs {[r.value for r in allowed_roles]}"
            )

            if UserRole.DRIVER in allowed_roles:
                raise exceptions.driver_required()
            raise exceptions.forbidden()

        return user

    def require_driver(self, user: User) -> User:
        """Require user to have the driver role."""
        return self.require_role(user, UserRole.DRIVER)


# =============================================================================
# FASTAPI DEPENDENCY FUNCTIONS
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        AppException: If authentication fails
    """
    auth_manager = AuthenticationManager(get_security_manager(), db)
    return await auth_manager.get_current_user(credentials)


async def require_driver(
    user: User = Depends(get_current_user)
) -> User:
    """
    FastAPI dependency requiring the driver role.

    Raises:
        AppException: DRIVER_REQUIRED if user is not a driver
    """
    auth_manager = AuthenticationManager(get_security_manager(), None)
    return auth_manager.require_driver(user)
