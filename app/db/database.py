"""
==============================================================================
Database Connection Management Module
==============================================================================

Database connection management using SQLAlchemy.

This module implements:
- DatabaseManager: Singleton owning the engine and session factory
- get_db(): request-scoped session dependency for FastAPI

SQLAlchemy Architecture:
-----------------------
    ┌─────────────────┐
    │ DatabaseManager │ (Singleton)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │     Engine      │ (Connection pool)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  SessionLocal   │ (Session factory)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Session      │ (Request-scoped)
    └─────────────────┘

SQLite Note:
-----------
FastAPI runs sync endpoints in a thread pool, so 'check_same_thread'
is disabled for SQLite connections.

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import get_settings


# Module logger
logger = logging.getLogger(__name__)

# SQLAlchemy declarative base for all models
Base = declarative_base()


class DatabaseManager:
    """
    Centralized database connection manager.

    The engine is created lazily on first access so configuration can
    change before the first connection is opened.

    Example:
        >>> db_manager = DatabaseManager()
        >>> with db_manager.session_scope() as session:
        ...     rides = session.query(Ride).all()
    """

    _instance: Optional[DatabaseManager] = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._settings = get_settings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._initialized = True

        logger.debug("DatabaseManager initialized")

    # =========================================================================
    # ENGINE MANAGEMENT
    # =========================================================================

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine (lazy initialization)."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        """
        Create the SQLAlchemy engine with appropriate configuration.

        - SQLite: disables check_same_thread, enables foreign keys
        - PostgreSQL/MySQL: uses connection pooling
        """
        database_url = self._settings.database_url

        if database_url.startswith("sqlite"):
            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                echo=self._settings.debug,
            )

            @event.listens_for(engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            logger.info(f"Created SQLite engine: {database_url}")

        else:
            engine = create_engine(
                database_url,
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=1800,
                pool_pre_ping=True,
                echo=self._settings.debug,
            )

            logger.info(f"Created database engine with pooling: {engine.url!r}")

        return engine

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    @property
    def session_factory(self) -> sessionmaker:
        """Get the session factory (lazy initialization)."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,  # Keep objects accessible after commit
            )
        return self._session_factory

    def get_session(self) -> Session:
        """
        Get a new database session.

        The caller is responsible for closing the session.
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success, rolls back on exception, always closes.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # TABLE MANAGEMENT
    # =========================================================================

    def create_tables(self) -> None:
        """Create all tables that don't already exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def drop_tables(self) -> None:
        """
        Drop all tables defined in the models.

        WARNING: This will delete all data!
        """
        Base.metadata.drop_all(bind=self.engine)
        logger.warning("All database tables dropped")

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def verify_connection(self) -> bool:
        """
        Verify database connection is working.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.debug("Database connection verified")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False

    def dispose(self) -> None:
        """Dispose of the connection pool on shutdown."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connection pool disposed")

    def __repr__(self) -> str:
        return f"DatabaseManager(url={self._settings.database_url!r})"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

@lru_cache(maxsize=1)
def get_database_manager() -> DatabaseManager:
    """Get the global DatabaseManager instance."""
    return DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session.

    The session is closed after the request.

    Usage:
        @router.get("/rides/{ride_id}")
        def get_ride(ride_id: str, db: Session = Depends(get_db)):
            ...
    """
    db_manager = get_database_manager()
    session = db_manager.get_session()
    try:
        yield session
    finally:
        session.close()
