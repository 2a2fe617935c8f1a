"""
==============================================================================
Ride Endpoints
==============================================================================

Ride requests for riders, pending-ride pickup for drivers, and completion.

Rider routes:
    POST /rides                          request a ride
    GET  /rides/{ride_id}                current state of a ride
    POST /rides/{ride_id}/complete       complete an accepted ride
    GET  /user/rides                     rides requested by the caller

Driver routes:
    GET  /driver/rides/requests          rides waiting for a driver
    GET  /driver/rides                   rides accepted by the caller
    POST /driver/rides/{ride_id}/accept  accept a waiting ride

==============================================================================
"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models import User
from app.core.dependencies import get_current_user, require_driver
from app.services.ride_service import RideService
from app.schemas.ride import RideCreate, RideResponse
from app.schemas.common import ErrorResponse


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Ride is in the wrong status"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    403: {"model": ErrorResponse, "description": "Caller may not act on this ride"},
    404: {"model": ErrorResponse, "description": "Ride or user not found"},
    409: {"model": ErrorResponse, "description": "Ride changed concurrently"},
}

router = APIRouter(tags=["Rides"], responses=ERROR_RESPONSES)


class RideController:
    """Controller for ride operations."""

    def __init__(self, db: Session):
        self._service = RideService(db)

    def request(self, data: RideCreate, user: User) -> RideResponse:
        """Request a ride."""
        ride = self._service.request_ride(
            user.id,
            data.pickup_location,
            data.drop_location
        )
        return RideResponse.from_model(ride)

    def get(self, ride_id: str) -> RideResponse:
        """Get a ride by id."""
        return RideResponse.from_model(self._service.get_ride(ride_id))

    def list_for_user(self, user: User) -> List[RideResponse]:
        """Rides requested by user."""
        rides = self._service.list_rides_for_user(user.id)
        return [RideResponse.from_model(r) for r in rides]

    def list_for_driver(self, driver: User) -> List[RideResponse]:
        """Rides accepted by driver."""
        rides = self._service.list_rides_for_driver(driver.id)
        return [RideResponse.from_model(r) for r in rides]

    def list_pending(self) -> List[RideResponse]:
        """Rides waiting for a driver."""
        return [RideResponse.from_model(r) for r in self._service.list_pending_rides()]

    def accept(self, ride_id: str, driver: User) -> RideResponse:
        """Accept a ride."""
        return RideResponse.from_model(self._service.accept_ride(ride_id, driver.id))

    def complete(self, ride_id: str, user: User) -> RideResponse:
        """Complete a ride."""
        return RideResponse.from_model(self._service.complete_ride(ride_id, user.id))


# =============================================================================
# RIDER ROUTES
# =============================================================================

@router.post("/rides", response_model=RideResponse)
async def request_ride(
    data: RideCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Request a new ride from pickupLocation to dropLocation."""
    return RideController(db).request(data, user)


@router.get("/rides/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the current state of a ride."""
    return RideController(db).get(ride_id)


@router.post("/rides/{ride_id}/complete", response_model=RideResponse)
async def complete_ride(
    ride_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Complete an accepted ride. Caller must be its rider or driver."""
    return RideController(db).complete(ride_id, user)


@router.get("/user/rides", response_model=List[RideResponse])
async def my_rides(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List rides requested by the current user."""
    return RideController(db).list_for_user(user)


# =============================================================================
# DRIVER ROUTES
# =============================================================================

@router.get("/driver/rides/requests", response_model=List[RideResponse])
async def pending_rides(
    driver: User = Depends(require_driver),
    db: Session = Depends(get_db)
):
    """List rides waiting for a driver."""
    return RideController(db).list_pending()


@router.get("/driver/rides", response_model=List[RideResponse])
async def driver_rides(
    driver: User = Depends(require_driver),
    db: Session = Depends(get_db)
):
    """List rides accepted by the current driver."""
    return RideController(db).list_for_driver(driver)


@router.post("/driver/rides/{ride_id}/accept", response_model=RideResponse)
async def accept_ride(
    ride_id: str,
    driver: User = Depends(require_driver),
    db: Session = Depends(get_db)
):
    """Accept a waiting ride as its driver."""
    return RideController(db).accept(ride_id, driver)
