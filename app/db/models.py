"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the rideshare system.

This module defines:
- UserRole: Enum for account roles
- RideStatus: Enum for ride states, with its transition table
- User: Account model
- Ride: Ride model

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                           users                                  │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (UUID, PK)                                                   │
    │ username (VARCHAR, UNIQUE, NOT NULL)                            │
    │ password_hash (VARCHAR, NOT NULL)                               │
    │ role (ENUM: ROLE_USER, ROLE_DRIVER)                             │
    │ created_at (DATETIME, DEFAULT now)                              │
    └─────────────────────────────────────────────────────────────────┘
                                    │
                                    │ 1:N (user_id)
                                    │ 1:N (driver_id)
                                    ▼
    ┌─────────────────────────────────────────────────────────────────┐
    │                            rides                                 │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (UUID, PK)                                                   │
    │ user_id (UUID, FK → users.id, NOT NULL)                         │
    │ driver_id (UUID, FK → users.id, NULLABLE)                       │
    │ pickup_location (VARCHAR, NOT NULL)                             │
    │ drop_location (VARCHAR, NOT NULL)                               │
    │ status (ENUM: REQUESTED, ACCEPTED, COMPLETED)                   │
    │ created_at (DATETIME, NOT NULL)                                 │
    └─────────────────────────────────────────────────────────────────┘

State Machine:
-------------

    ┌───────────┐  accept()  ┌──────────┐  complete()  ┌───────────┐
    │ REQUESTED │ ─────────▶ │ ACCEPTED │ ───────────▶ │ COMPLETED │
    └───────────┘            └──────────┘              └───────────┘

=============================================================================
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import FrozenSet, List, Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, relationship

from app.db.database import Base


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    """
    Account role enumeration.

    - USER: Rider, requests rides
    - DRIVER: Picks up and accepts pending rides

    The enum inherits from str to enable JSON serialization.
    """

    USER = "ROLE_USER"
    DRIVER = "ROLE_DRIVER"

    def __str__(self) -> str:
        return self.value


class RideStatus(str, enum.Enum):
    """
    Ride status enumeration.

    Valid Transitions:
    - REQUESTED → ACCEPTED (driver accepts)
    - ACCEPTED → COMPLETED (rider or driver completes)

    COMPLETED is terminal. There is no path back to REQUESTED.
    """

    REQUESTED = "REQUESTED"
    ACCEPTED = "ACCEPTED"
    COMPLETED = "COMPLETED"

    def __str__(self) -> str:
        return self.value

    @property
    def allowed_transitions(self) -> FrozenSet[RideStatus]:
        """Statuses reachable from this one in a single step."""
        return RIDE_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        """Check if status is a terminal (final) state."""
        return not RIDE_TRANSITIONS[self]

    def can_transition_to(self, target: RideStatus) -> bool:
        """Check if moving from this status to target is allowed."""
        return target in RIDE_TRANSITIONS[self]


# Every RideStatus must have an entry
RIDE_TRANSITIONS = {
    RideStatus.REQUESTED: frozenset({RideStatus.ACCEPTED}),
    RideStatus.ACCEPTED: frozenset({RideStatus.COMPLETED}),
    RideStatus.COMPLETED: frozenset(),
}


# =============================================================================
# USER MODEL
# =============================================================================

class User(Base):
    """
    User account model.

    Attributes:
        id: Unique identifier (UUID)
        username: Unique login name (lowercase)
        password_hash: Bcrypt hashed password
        role: ROLE_USER or ROLE_DRIVER, fixed at registration
        created_at: Account creation timestamp

    Relationships:
        rides: Rides requested by this user
        driven_rides: Rides accepted by this user as driver
    """

    __tablename__ = "users"

    id: str = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique user identifier (UUID)"
    )

    username: str = Column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique login name (lowercase)"
    )

    password_hash: str = Column(
        String(255),
        nullable=False,
        doc="Bcrypt hashed password"
    )

    role: UserRole = Column(
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False,
        doc="Account role"
    )

    created_at: datetime = Column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
        doc="Account creation timestamp"
    )

    rides: Mapped[List["Ride"]] = relationship(
        "Ride",
        back_populates="rider",
        foreign_keys="Ride.user_id",
        doc="Rides requested by this user"
    )

    driven_rides: Mapped[List["Ride"]] = relationship(
        "Ride",
        back_populates="driver",
        foreign_keys="Ride.driver_id",
        doc="Rides accepted by this user"
    )

    @property
    def is_driver(self) -> bool:
        """Check if user has the driver role."""
        return self.role == UserRole.DRIVER

    def __repr__(self) -> str:
        return (
            f"User(id={self.id!r}, "
            f"username={self.username!r}, "
            f"role={self.role.value!r})"
        )

    def __str__(self) -> str:
        return f"{self.username} ({self.role.value})"


# =============================================================================
# RIDE MODEL
# =============================================================================

class Ride(Base):
    """
    Ride model.

    A ride is owned by the rider who requested it. ``driver_id`` stays
    NULL while the ride is REQUESTED and is written exactly once, together
    with the move to ACCEPTED.

    Attributes:
        id: Unique identifier (UUID)
        user_id: Owning rider
        driver_id: Assigned driver (NULL until accepted)
        pickup_location: Free-form pickup descriptor
        drop_location: Free-form drop-off descriptor
        status: Current ride status
        created_at: Request timestamp
    """

    __tablename__ = "rides"

    id: str = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique ride identifier (UUID)"
    )

    user_id: str = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        doc="UUID of the requesting rider"
    )

    driver_id: Optional[str] = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=True,
        index=True,
        doc="UUID of the accepting driver"
    )

    pickup_location: str = Column(
        String(255),
        nullable=False,
        doc="Pickup location descriptor"
    )

    drop_location: str = Column(
        String(255),
        nullable=False,
        doc="Drop-off location descriptor"
    )

    status: RideStatus = Column(
        Enum(RideStatus),
        default=RideStatus.REQUESTED,
        nullable=False,
        index=True,
        doc="Current ride status"
    )

    created_at: datetime = Column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
        doc="Ride request timestamp"
    )

    rider: Mapped["User"] = relationship(
        "User",
        back_populates="rides",
        foreign_keys=[user_id],
    )

    driver: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="driven_rides",
        foreign_keys=[driver_id],
    )

    def involves(self, user_id: str) -> bool:
        """Check if the user is this ride's rider or assigned driver."""
        return user_id in (self.user_id, self.driver_id)

    def __repr__(self) -> str:
        return (
            f"Ride(id={self.id!r}, "
            f"status={self.status.value!r}, "
            f"user_id={self.user_id!r}, "
            f"driver_id={self.driver_id!r})"
        )
