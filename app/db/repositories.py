"""
==============================================================================
Repository Module - Data Access
==============================================================================

Thin query objects over the ORM models.

Repositories never commit. The calling service owns the transaction.

    ┌─────────────────┐
    │    Service      │  ← Business Logic, commit/rollback
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │   Repository    │  ← Lookups and conditional writes
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Session      │
    └─────────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.models import Ride, RideStatus, User


# Module logger
logger = logging.getLogger(__name__)


class UserRepository:
    """Lookups for User records."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._db.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self._db.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def exists_by_username(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def add(self, user: User) -> User:
        self._db.add(user)
        self._db.flush()
        return user


class RideRepository:
    """
    Lookups and writes for Ride records.

    Status changes go through compare_and_set(), which only writes when
    the stored status still equals the expected one.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    # =========================================================================
    # READS
    # =========================================================================

    def get_by_id(self, ride_id: str) -> Optional[Ride]:
        """Get a ride, served from the session identity map when present."""
        return self._db.get(Ride, ride_id)

    def refresh(self, ride_id: str) -> Optional[Ride]:
        """Re-read a ride from the database, overwriting any cached state."""
        return self._db.get(Ride, ride_id, populate_existing=True)

    def list_by_user(self, user_id: str) -> List[Ride]:
        return list(self._db.execute(
            select(Ride)
            .where(Ride.user_id == user_id)
            .order_by(Ride.created_at)
        ).scalars())

    def list_by_driver(self, driver_id: str) -> List[Ride]:
        return list(self._db.execute(
            select(Ride)
            .where(Ride.driver_id == driver_id)
            .order_by(Ride.created_at)
        ).scalars())

    def list_by_status(self, status: RideStatus) -> List[Ride]:
        return list(self._db.execute(
            select(Ride)
            .where(Ride.status == status)
            .order_by(Ride.created_at)
        ).scalars())

    # =========================================================================
    # WRITES
    # =========================================================================

    def add(self, ride: Ride) -> Ride:
        self._db.add(ride)
        self._db.flush()
        return ride

    def compare_and_set(
        self,
        ride_id: str,
        expected: RideStatus,
        **values: Any
    ) -> bool:
        """
        Atomically update a ride only if its status equals ``expected``.

        Issues a single ``UPDATE ... WHERE id = :id AND status = :expected``,
        so the check and the write cannot be separated by another writer.

        Args:
            ride_id: Ride to update
            expected: Status the ride must currently have
            **values: Column values to write

        Returns:
            True if exactly one row was updated, False otherwise
        """
        result = self._db.execute(
            update(Ride)
            .where(Ride.id == ride_id, Ride.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        updated = result.rowcount == 1
        if not updated:
            logger.debug(
                f"Conditional update skipped: ride {ride_id} no longer {expected.value}"
            )
        return updated
