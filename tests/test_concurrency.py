"""
==============================================================================
Concurrency Tests
==============================================================================

Competing drivers racing for the same ride.

Each worker gets its own session on a shared SQLite file, so writes go
through real separate connections.

==============================================================================
"""

import threading
from typing import List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import AppException
from app.core.security import get_security_manager
from app.db.database import Base
from app.db.models import Ride, RideStatus, User, UserRole
from app.services.ride_service import RideService


DRIVER_COUNT = 8


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)

    factory = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
    yield factory

    engine.dispose()


def _seed(factory, driver_count: int):
    """Create one rider with a pending ride plus some drivers."""
    security = get_security_manager()
    password_hash = security.hash_password("pw")

    with factory() as session:
        rider = User(username="rider", password_hash=password_hash, role=UserRole.USER)
        drivers = [
            User(username=f"driver{i}", password_hash=password_hash, role=UserRole.DRIVER)
            for i in range(driver_count)
        ]
        session.add(rider)
        session.add_all(drivers)
        session.commit()

        ride = RideService(session).request_ride(rider.id, "A", "B")
        return rider.id, ride.id, [d.id for d in drivers]


class TestConcurrentAccept:
    """Only one driver may win a ride."""

    def test_exactly_one_driver_wins(self, session_factory):
        _, ride_id, driver_ids = _seed(session_factory, DRIVER_COUNT)

        barrier = threading.Barrier(DRIVER_COUNT)
        winners: List[str] = []
        failures: List[AppException] = []
        unexpected: List[BaseException] = []
        lock = threading.Lock()

        def worker(driver_id: str):
            with session_factory() as session:
                service = RideService(session)
                barrier.wait()
                try:
                    ride = service.accept_ride(ride_id, driver_id)
                    with lock:
                        winners.append(ride.driver_id)
                except AppException as e:
                    with lock:
                        failures.append(e)
                except Exception as e:
                    with lock:
                        unexpected.append(e)

        threads = [
            threading.Thread(target=worker, args=(driver_id,))
            for driver_id in driver_ids
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert unexpected == []
        assert len(winners) == 1
        assert len(failures) == DRIVER_COUNT - 1
        assert {e.code for e in failures} <= {"INVALID_STATUS", "RIDE_CONFLICT"}

        with session_factory() as session:
            ride = session.get(Ride, ride_id)
            assert ride.status == RideStatus.ACCEPTED
            assert ride.driver_id == winners[0]

    def test_stale_read_is_reported_as_conflict(self, session_factory):
        _, ride_id, driver_ids = _seed(session_factory, 2)
        first_driver, second_driver = driver_ids

        with session_factory() as stale, session_factory() as fresh:
            # Keep the loaded ride referenced so it stays in the identity map
            held = stale.get(Ride, ride_id)
            assert held.status == RideStatus.REQUESTED

            RideService(fresh).accept_ride(ride_id, first_driver)

            with pytest.raises(AppException) as exc:
                RideService(stale).accept_ride(ride_id, second_driver)

            assert exc.value.code == "RIDE_CONFLICT"
            assert exc.value.status_code == 409
            assert exc.value.details["current_status"] == "ACCEPTED"
            assert held.status == RideStatus.ACCEPTED

        with session_factory() as session:
            ride = session.get(Ride, ride_id)
            assert ride.status == RideStatus.ACCEPTED
            assert ride.driver_id == first_driver

    def test_concurrent_complete_succeeds_once(self, session_factory):
        rider_id, ride_id, driver_ids = _seed(session_factory, 1)
        driver_id = driver_ids[0]

        with session_factory() as session:
            RideService(session).accept_ride(ride_id, driver_id)

        with session_factory() as rider_session, session_factory() as driver_session:
            rider_service = RideService(rider_session)
            driver_service = RideService(driver_session)

            # Both callers see the ride as ACCEPTED
            rider_view = rider_service.get_ride(ride_id)
            driver_view = driver_service.get_ride(ride_id)
            assert rider_view.status == driver_view.status == RideStatus.ACCEPTED

            completed = rider_service.complete_ride(ride_id, rider_id)
            assert completed.status == RideStatus.COMPLETED

            with pytest.raises(AppException) as exc:
                driver_service.complete_ride(ride_id, driver_id)
            assert exc.value.code == "RIDE_CONFLICT"
