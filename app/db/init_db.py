"""
==============================================================================
Database Initialization Module
==============================================================================

Database setup run on application startup.

Initialization Flow:
-------------------
1. Check the database is reachable
2. Create all tables from ORM models
3. Verify the tables answer queries

Usage:
------
    from app.db import init_db, DatabaseInitializer

    init_db()

    initializer = DatabaseInitializer()
    initializer.create_tables()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.database import DatabaseManager
from app.db.models import Ride, User


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Attributes:
        _db_manager: DatabaseManager instance
        _session: Optional externally owned session

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        self._db_manager = db_manager or DatabaseManager()
        self._session = session

    def _get_session(self) -> Session:
        if self._session is not None:
            return self._session
        return self._db_manager.get_session()

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """Create all database tables (idempotent)."""
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def drop_tables(self) -> None:
        """
        Drop all database tables.

        WARNING: This will delete all data.
        """
        logger.warning("Dropping all database tables...")
        self._db_manager.drop_tables()
        logger.warning("⚠️ All database tables dropped")

    def verify_tables(self) -> bool:
        """
        Verify that the users and rides tables answer queries.

        Returns:
            True if all tables exist, False otherwise
        """
        session = self._get_session()
        try:
            session.query(User).first()
            session.query(Ride).first()

            logger.debug("Database tables verified successfully")
            return True

        except SQLAlchemyError as e:
            logger.error(f"Table verification failed: {e}")
            return False
        finally:
            if self._session is None:
                session.close()

    # =========================================================================
    # FULL INITIALIZATION
    # =========================================================================

    def initialize(self) -> bool:
        """
        Run full database initialization.

        Returns:
            True if the schema is in place and queryable
        """
        logger.info("=" * 50)
        logger.info("Initializing database...")
        logger.info("=" * 50)

        if not self._db_manager.verify_connection():
            logger.error("❌ Database is unreachable")
            return False

        self.create_tables()

        if not self.verify_tables():
            logger.error("❌ Database initialization failed")
            return False

        logger.info("✅ Database initialization complete")
        return True

    def reset(self) -> bool:
        """
        Drop and recreate the schema.

        WARNING: Development/testing only.
        """
        self.drop_tables()
        return self.initialize()


def init_db() -> bool:
    """
    Initialize the database with default settings.

    Called from the application lifespan on startup.
    """
    return DatabaseInitializer().initialize()
