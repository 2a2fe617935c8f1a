"""
==============================================================================
Security Module - Authentication & Cryptography
==============================================================================

Security management for JWT bearer tokens and password hashing.

This module implements:
- SecurityManager: Singleton class for all security operations
- JWT token generation and verification
- Password hashing using bcrypt

Token Structure:
---------------
{
    "sub": "user-uuid",           # Subject (user ID)
    "username": "alice",          # Username for convenience
    "role": "ROLE_USER",          # Account role
    "type": "access",             # Token type
    "exp": 1234567890,            # Expiration timestamp
    "iat": 1234567890             # Issued at timestamp
}

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.config import get_settings


# Module logger
logger = logging.getLogger(__name__)


class TokenStatus:
    """Outcome labels for token verification."""

    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


class SecurityManager:
    """
    Centralized security manager for authentication operations.

    Handles:
    - Password hashing and verification using bcrypt
    - JWT access token generation
    - Token verification and decoding

    Example:
        >>> security = SecurityManager()
        >>> hashed = security.hash_password("secret123")
        >>> security.verify_password("secret123", hashed)
        True
        >>> token = security.create_access_token({"sub": "user-id"})
        >>> payload = security.verify_token(token)
    """

    TOKEN_TYPE_ACCESS = "access"

    BCRYPT_SCHEMES = ["bcrypt"]
    BCRYPT_DEPRECATED = "auto"

    def __init__(self) -> None:
        self._pwd_context = CryptContext(
            schemes=self.BCRYPT_SCHEMES,
            deprecated=self.BCRYPT_DEPRECATED
        )
        self._settings = get_settings()

        logger.debug("SecurityManager initialized")

    # =========================================================================
    # PASSWORD HASHING METHODS
    # =========================================================================

    def hash_password(self, plain_password: str) -> str:
        """
        Hash a plain text password using bcrypt.

        Bcrypt generates a random salt and embeds it in the result.

        Args:
            plain_password: The plain text password to hash

        Returns:
            Bcrypt hash string (includes algorithm, salt, and hash)

        Raises:
            ValueError: If the password is empty
        """
        if not plain_password:
            raise ValueError("Password cannot be empty")

        return self._pwd_context.hash(plain_password)

    def verify_password(
        self,
        plain_password: str,
        hashed_password: str
    ) -> bool:
        """
        Verify a plain text password against a bcrypt hash.

        Returns:
            True if password matches, False otherwise (including a
            malformed hash)
        """
        try:
            return self._pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification error: {type(e).__name__}")
            return False

    # =========================================================================
    # JWT TOKEN METHODS
    # =========================================================================

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            data: Payload data (must include 'sub' for user ID)
            expires_delta: Custom expiration time (optional)

        Returns:
            Encoded JWT access token string
        """
        payload = data.copy()

        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(
            minutes=self._settings.access_token_expire_minutes
        ))

        payload.update({
            "type": self.TOKEN_TYPE_ACCESS,
            "exp": expire,
            "iat": now
        })

        encoded_token = jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm
        )

        logger.debug(f"Created access token, expires: {expire.isoformat()}")
        return encoded_token

    def decode_token(self, token: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        """
        Verify a token and report why it failed, if it did.

        Checks the signature, the expiration and the token type.

        Returns:
            Tuple of (TokenStatus value, payload or None)
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm]
            )
        except ExpiredSignatureError:
            logger.debug("Token verification failed: token expired")
            return TokenStatus.EXPIRED, None
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return TokenStatus.INVALID, None

        if payload.get("type") != self.TOKEN_TYPE_ACCESS:
            logger.warning(
                f"Token type mismatch: expected {self.TOKEN_TYPE_ACCESS}, "
                f"got {payload.get('type')}"
            )
            return TokenStatus.INVALID, None

        return TokenStatus.VALID, payload

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT access token.

        Returns:
            Decoded payload dictionary if valid, None otherwise
        """
        _, payload = self.decode_token(token)
        return payload

    def get_access_token_expire_seconds(self) -> int:
        """Get access token expiration time in seconds."""
        return self._settings.access_token_expire_seconds


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_security_manager() -> SecurityManager:
    """Get the global SecurityManager instance."""
    return SecurityManager()
