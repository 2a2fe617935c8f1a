"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, and authentication fixtures.

==============================================================================
"""

import os

# Force the application engine onto an in-memory database, whatever the shell exports
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from typing import Generator, Dict
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import Base, get_db
from app.db.models import User, UserRole
from app.core.security import get_security_manager
from app.services.ride_service import RideService


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def ride_service(db: Session) -> RideService:
    return RideService(db)


# ============================================================================
# USER FIXTURES
# ============================================================================

def _make_user(db: Session, username: str, password: str, role: UserRole) -> User:
    security = get_security_manager()
    user = User(
        username=username,
        password_hash=security.hash_password(password),
        role=role
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def rider_user(db: Session) -> User:
    """Create a rider (ROLE_USER) in the test database."""
    return _make_user(db, "alice", "alice123", UserRole.USER)


@pytest.fixture
def other_rider(db: Session) -> User:
    """Create a second rider."""
    return _make_user(db, "carol", "carol123", UserRole.USER)


@pytest.fixture
def driver_user(db: Session) -> User:
    """Create a driver (ROLE_DRIVER) in the test database."""
    return _make_user(db, "bob", "bob12345", UserRole.DRIVER)


@pytest.fixture
def other_driver(db: Session) -> User:
    """Create a second driver."""
    return _make_user(db, "dave", "dave1234", UserRole.DRIVER)


# ============================================================================
# TOKEN / HEADER FIXTURES
# ============================================================================

def _headers_for(user: User) -> Dict[str, str]:
    token = get_security_manager().create_access_token({
        "sub": user.id,
        "username": user.username,
        "role": user.role.value
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def rider_headers(rider_user: User) -> Dict[str, str]:
    """Authorization headers for the rider."""
    return _headers_for(rider_user)


@pytest.fixture
def other_rider_headers(other_rider: User) -> Dict[str, str]:
    return _headers_for(other_rider)


@pytest.fixture
def driver_headers(driver_user: User) -> Dict[str, str]:
    """Authorization headers for the driver."""
    return _headers_for(driver_user)


@pytest.fixture
def other_driver_headers(other_driver: User) -> Dict[str, str]:
    return _headers_for(other_driver)
