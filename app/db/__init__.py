"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure, ORM models and repositories.

Architecture:
------------
├── database.py      - DatabaseManager class, session factory
├── models.py        - User and Ride ORM models, UserRole/RideStatus enums
├── repositories.py  - UserRepository, RideRepository
└── init_db.py       - DatabaseInitializer for setup

Usage:
------
    from app.db import DatabaseManager, RideRepository, RideStatus

    db_manager = DatabaseManager()
    with db_manager.session_scope() as session:
        pending = RideRepository(session).list_by_status(RideStatus.REQUESTED)

==============================================================================
"""

from .database import DatabaseManager, Base, get_db
from .models import User, Ride, UserRole, RideStatus
from .repositories import UserRepository, RideRepository
from .init_db import DatabaseInitializer, init_db

__all__ = [
    # Database management
    "DatabaseManager",
    "Base",
    "get_db",
    # Models
    "User",
    "Ride",
    # Enums
    "UserRole",
    "RideStatus",
    # Repositories
    "UserRepository",
    "RideRepository",
    # Initialization
    "DatabaseInitializer",
    "init_db",
]
