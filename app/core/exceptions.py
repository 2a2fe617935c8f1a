"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Ride not found", "RIDE_NOT_FOUND", 404)
        raise AppException("Ride was modified concurrently", "RIDE_CONFLICT", 409)

    Error Codes:
        Authentication:
            - INVALID_CREDENTIALS (401)
            - TOKEN_EXPIRED (401)
            - TOKEN_INVALID (401)

        Authorization:
            - FORBIDDEN (403)
            - DRIVER_REQUIRED (403)

        User:
            - USER_NOT_FOUND (404)
            - USERNAME_EXISTS (409)

        Ride:
            - RIDE_NOT_FOUND (404)
            - INVALID_STATUS (400)
            - RIDE_CONFLICT (409)

        General:
            - VALIDATION_ERROR (422)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "RIDE_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to the JSON error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Wrap FastAPI request validation errors in the same envelope."""
    error = validation_error(
        "Request validation failed",
        {"errors": jsonable_encoder(exc.errors())}
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_credentials() -> AppException:
    """Create invalid credentials exception."""
    return AppException("Invalid username or password", "INVALID_CREDENTIALS", 401)


def token_expired() -> AppException:
    """Create token expired exception."""
    return AppException("Token has expired", "TOKEN_EXPIRED", 401)


def token_invalid() -> AppException:
    """Create invalid token exception."""
    return AppException("Invalid or malformed token", "TOKEN_INVALID", 401)


def forbidden(message: str = "Access denied") -> AppException:
    """Create forbidden access exception."""
    return AppException(message, "FORBIDDEN", 403)


def driver_required() -> AppException:
    """Create driver role required exception."""
    return AppException("Driver role required", "DRIVER_REQUIRED", 403)


def user_not_found(user_id: Optional[str] = None) -> AppException:
    """Create user not found exception."""
    details = {"user_id": user_id} if user_id else {}
    return AppException("User not found", "USER_NOT_FOUND", 404, details)


def username_exists(username: str) -> AppException:
    """Create username already exists exception."""
    return AppException(
        f"Username '{username}' already exists",
        "USERNAME_EXISTS",
        409,
        {"username": username}
    )


def ride_not_found(ride_id: Optional[str] = None) -> AppException:
    """Create ride not found exception."""
    details = {"ride_id": ride_id} if ride_id else {}
    return AppException("Ride not found", "RIDE_NOT_FOUND", 404, details)


def invalid_status(current: str, expected: str) -> AppException:
    """Create invalid status exception."""
    return AppException(
        f"Invalid ride status. Current: {current}, Expected: {expected}",
        "INVALID_STATUS",
        400,
        {"current_status": current, "expected_status": expected}
    )


def ride_conflict(ride_id: str, current: Optional[str], expected: str) -> AppException:
    """Create exception for a ride changed by a concurrent request."""
    return AppException(
        "Ride was modified by another request",
        "RIDE_CONFLICT",
        409,
        {"ride_id": ride_id, "current_status": current, "expected_status": expected}
    )


def validation_error(
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> AppException:
    """Create request validation exception."""
    return AppException(message, "VALIDATION_ERROR", 422, details)
