"""
==============================================================================
Authentication Endpoints
==============================================================================

Account registration, login and current-user lookup.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models import User
from app.core.dependencies import get_current_user
from app.services.auth_service import AuthService
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    CurrentUserResponse,
    CurrentUserInfo,
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


class AuthController:
    """Controller for authentication operations."""

    def __init__(self, db: Session):
        self._service = AuthService(db)

    def _to_response(self, user: User, token: str) -> AuthResponse:
        return AuthResponse(
            token=token,
            expires_in=self._service.get_token_expiry_seconds(),
            username=user.username,
            role=user.role
        )

    def register(self, request: RegisterRequest) -> AuthResponse:
        """Create an account and issue a token."""
        user, token = self._service.register(
            request.username,
            request.password,
            request.role
        )
        return self._to_response(user, token)

    def login(self, request: LoginRequest) -> AuthResponse:
        """Authenticate user and issue a token."""
        user, token = self._service.authenticate(
            request.username,
            request.password
        )
        return self._to_response(user, token)


@router.post("/register", response_model=AuthResponse)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register a rider (ROLE_USER) or driver (ROLE_DRIVER) account."""
    controller = AuthController(db)
    return controller.register(request)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate user and get a bearer token."""
    controller = AuthController(db)
    return controller.login(request)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return CurrentUserResponse(
        user=CurrentUserInfo(
            id=user.id,
            username=user.username,
            role=user.role,
            created_at=user.created_at
        )
    )
