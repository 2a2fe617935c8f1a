"""
==============================================================================
Authentication Service Module
==============================================================================

Account registration and login.

Authentication Flow:
-------------------
    ┌─────────────┐
    │   Login     │
    │  Request    │
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │ Find User   │────▶│ User Not    │ → INVALID_CREDENTIALS
    └──────┬──────┘     │   Found     │
           │            └─────────────┘
    ┌──────▼──────┐     ┌─────────────┐
    │  Verify     │────▶│  Password   │ → INVALID_CREDENTIALS
    │  Password   │     │   Wrong     │
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐
    │  Generate   │
    │   Token     │
    └─────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models import User, UserRole
from app.db.repositories import UserRepository
from app.core.security import SecurityManager, get_security_manager
from app.core import exceptions


# Module logger
logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for registration, login and token issuance.

    Attributes:
        _db: Database session
        _users: User repository
        _security: SecurityManager for crypto operations

    Example:
        >>> auth_service = AuthService(db_session)
        >>> user, token = auth_service.register("alice", "pw", UserRole.USER)
        >>> user, token = auth_service.authenticate("alice", "pw")
    """

    def __init__(
        self,
        db: Session,
        security: Optional[SecurityManager] = None
    ) -> None:
        self._db = db
        self._users = UserRepository(db)
        self._security = security or get_security_manager()

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(
        self,
        username: str,
        password: str,
        role: UserRole
    ) -> Tuple[User, str]:
        """
        Register a new account and issue a token for it.

        Args:
            username: Desired login name (case-insensitive)
            password: Plain text password, stored only as a bcrypt hash
            role: ROLE_USER or ROLE_DRIVER, fixed for the account's lifetime

        Returns:
            Tuple of (User, access_token)

        Raises:
            AppException: USERNAME_EXISTS if the name is taken
        """
        normalized_username = username.lower().strip()

        if self._users.exists_by_username(normalized_username):
            logger.warning(f"Registration failed: username exists - {normalized_username}")
            raise exceptions.username_exists(normalized_username)

        user = User(
            username=normalized_username,
            password_hash=self._security.hash_password(password),
            role=role
        )

        try:
            self._users.add(user)
            self._db.commit()
            self._db.refresh(user)
        except IntegrityError:
            self._db.rollback()
            raise exceptions.username_exists(normalized_username)

        logger.info(f"✅ User registered: {user.username} (role: {user.role.value})")

        return user, self._generate_token(user)

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(
        self,
        username: str,
        password: str
    ) -> Tuple[User, str]:
        """
        Authenticate user with username and password.

        An unknown username and a wrong password fail identically.

        Returns:
            Tuple of (User, access_token)

        Raises:
            AppException: INVALID_CREDENTIALS if user not found or password wrong
        """
        normalized_username = username.lower().strip()

        user = self._users.get_by_username(normalized_username)

        if not user:
            logger.warning(f"Login failed: user not found - {normalized_username}")
            raise exceptions.invalid_credentials()

        if not self._security.verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password - {normalized_username}")
            raise exceptions.invalid_credentials()

        logger.info(f"✅ User authenticated: {user.username}")

        return user, self._generate_token(user)

    # =========================================================================
    # TOKEN GENERATION
    # =========================================================================

    def _generate_token(self, user: User) -> str:
        token_data = {
            "sub": user.id,
            "username": user.username,
            "role": user.role.value
        }
        return self._security.create_access_token(token_data)

    def get_token_expiry_seconds(self) -> int:
        """Get access token expiration time in seconds."""
        return self._security.get_access_token_expire_seconds()
