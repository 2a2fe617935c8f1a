"""
==============================================================================
Ride Service Module
==============================================================================

Ride lifecycle management.

This module implements:
- RideService: request, accept and complete rides, plus ride queries

State Machine:
-------------

    ┌───────────┐  accept_ride()  ┌──────────┐  complete_ride()  ┌───────────┐
    │ REQUESTED │ ──────────────▶ │ ACCEPTED │ ────────────────▶ │ COMPLETED │
    └───────────┘                 └──────────┘                   └───────────┘

Any other transition fails with INVALID_STATUS and leaves the ride unchanged.

Concurrent Writers:
------------------
Every transition is written with RideRepository.compare_and_set(), a
single UPDATE guarded by the expected current status. When two drivers
accept the same ride at once, exactly one UPDATE matches a row. The other
caller gets INVALID_STATUS (it already saw the new status) or
RIDE_CONFLICT (it read the ride before the winner wrote it).

Principal:
---------
Every operation takes the acting user's id explicitly and resolves it
against the user store.

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from app.db.models import Ride, RideStatus, User
from app.db.repositories import RideRepository, UserRepository
from app.core import exceptions


# Module logger
logger = logging.getLogger(__name__)


class RideService:
    """
    Service for ride lifecycle operations.

    Attributes:
        _db: Database session (transaction owner)
        _rides: Ride repository
        _users: User repository

    Example:
        >>> service = RideService(db_session)
        >>> ride = service.request_ride(rider.id, "A", "B")
        >>> ride = service.accept_ride(ride.id, driver.id)
        >>> ride = service.complete_ride(ride.id, rider.id)
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._rides = RideRepository(db)
        self._users = UserRepository(db)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _resolve_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise exceptions.user_not_found(user_id)
        return user

    def get_ride(self, ride_id: str) -> Ride:
        """
        Get the current state of a ride.

        Raises:
            AppException: RIDE_NOT_FOUND if no such ride
        """
        ride = self._rides.refresh(ride_id)
        if not ride:
            raise exceptions.ride_not_found(ride_id)
        return ride

    # =========================================================================
    # CREATE
    # =========================================================================

    def request_ride(
        self,
        actor_id: str,
        pickup_location: str,
        drop_location: str
    ) -> Ride:
        """
        Create a new ride request owned by the actor.

        Any registered user may request a ride, whatever their role.

        Returns:
            The persisted ride, status REQUESTED and no driver

        Raises:
            AppException: USER_NOT_FOUND if the actor does not exist
        """
        user = self._resolve_user(actor_id)

        ride = Ride(
            user_id=user.id,
            driver_id=None,
            pickup_location=pickup_location,
            drop_location=drop_location,
            status=RideStatus.REQUESTED,
            created_at=datetime.now(timezone.utc)
        )

        self._rides.add(ride)
        self._db.commit()
        self._db.refresh(ride)

        logger.info(f"🚕 Ride requested: {ride.id} by {user.username}")
        return ride

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def list_pending_rides(self) -> List[Ride]:
        """All rides still waiting for a driver, oldest first."""
        return self._rides.list_by_status(RideStatus.REQUESTED)

    def list_rides_for_user(self, actor_id: str) -> List[Ride]:
        """
        All rides owned by the actor, in any status.

        Raises:
            AppException: USER_NOT_FOUND if the actor does not exist
        """
        user = self._resolve_user(actor_id)
        return self._rides.list_by_user(user.id)

    def list_rides_for_driver(self, actor_id: str) -> List[Ride]:
        """
        All rides accepted by the actor as driver.

        Raises:
            AppException: USER_NOT_FOUND if the actor does not exist
        """
        user = self._resolve_user(actor_id)
        return self._rides.list_by_driver(user.id)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def accept_ride(self, ride_id: str, actor_id: str) -> Ride:
        """
        Accept a pending ride as its driver.

        Args:
            ride_id: Ride to accept
            actor_id: Accepting user, must have ROLE_DRIVER

        Returns:
            The ride, now ACCEPTED with driver_id set to the actor

        Raises:
            AppException: USER_NOT_FOUND / RIDE_NOT_FOUND if missing
            AppException: DRIVER_REQUIRED if the actor is not a driver
            AppException: INVALID_STATUS if the ride is not REQUESTED
            AppException: RIDE_CONFLICT if another driver won the ride
        """
        driver = self._resolve_user(actor_id)

        if not driver.is_driver:
            logger.warning(f"Accept rejected: {driver.username} is not a driver")
            raise exceptions.driver_required()

        ride = self._rides.get_by_id(ride_id)
        if not ride:
            raise exceptions.ride_not_found(ride_id)

        return self._transition(
            ride,
            RideStatus.ACCEPTED,
            actor=driver,
            driver_id=driver.id
        )

    def complete_ride(self, ride_id: str, actor_id: str) -> Ride:
        """
        Complete an accepted ride.

        Only the ride's rider or its assigned driver may complete it.

        Raises:
            AppException: USER_NOT_FOUND / RIDE_NOT_FOUND if missing
            AppException: FORBIDDEN if the actor is not part of the ride
            AppException: INVALID_STATUS if the ride is not ACCEPTED
            AppException: RIDE_CONFLICT if the ride changed concurrently
        """
        actor = self._resolve_user(actor_id)

        ride = self._rides.get_by_id(ride_id)
        if not ride:
            raise exceptions.ride_not_found(ride_id)

        if not ride.involves(actor.id):
            logger.warning(f"Complete rejected: {actor.username} is not on ride {ride_id}")
            raise exceptions.forbidden("Only the ride's rider or driver can complete it")

        return self._transition(ride, RideStatus.COMPLETED, actor=actor)

    def _transition(
        self,
        ride: Ride,
        target: RideStatus,
        actor: User,
        **values
    ) -> Ride:
        """
        Move a ride to ``target`` with a conditional write.

        The status check on the loaded ride gives the caller a precise
        INVALID_STATUS. The conditional UPDATE catches anything that
        changed after the ride was loaded.
        """
        current = ride.status
        expected = self._expected_source(target)

        if not current.can_transition_to(target):
            logger.warning(
                f"Transition rejected: ride {ride.id} {current.value} → {target.value}"
            )
            raise exceptions.invalid_status(current.value, expected.value)

        updated = self._rides.compare_and_set(
            ride.id,
            expected=current,
            status=target,
            **values
        )
        self._db.commit()

        fresh = self._rides.refresh(ride.id)

        if not updated:
            logger.warning(
                f"Transition conflict: ride {ride.id} changed before "
                f"{actor.username} could move it to {target.value}"
            )
            raise exceptions.ride_conflict(
                ride.id,
                fresh.status.value if fresh else None,
                expected.value
            )

        logger.info(f"✅ Ride {fresh.id}: {current.value} → {target.value} by {actor.username}")
        return fresh

    @staticmethod
    def _expected_source(target: RideStatus) -> RideStatus:
        """The single status a ride must be in to move to ``target``."""
        for status in RideStatus:
            if target in status.allowed_transitions:
                return status
        raise ValueError(f"No transition leads to {target.value}")
