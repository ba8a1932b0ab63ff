"""
Purpose: Domain models for the Rides capability.
What it does:
- Defines core data structures:
- PassengerRequest (id, user, pickup/dropoff coords, price, status, trip reference)
- Trip (id, vehicle reference, append-only stop path, status)
- User (id, name, email)

Defines enums/constants:
- RequestStatus = PENDING | CONFIRMED | CANCELLED
- TripStatus = SCHEDULED | COMPLETED

Rule: No store access, no matching logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
import uuid

from routing.geo import LatLon, haversine_km


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class TripStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    # terminal "closed" state, whether the trip ended or was emptied by cancellations
    COMPLETED = "COMPLETED"


@dataclass
class User:
    id: str
    name: str
    email: Optional[str] = None

    @staticmethod
    def new(name: str, email: Optional[str] = None) -> User:
        return User(id=_new_id(), name=name, email=email)


@dataclass
class PassengerRequest:
    """
    A single passenger's pickup/dropoff booking.

    Only CONFIRMED and PENDING requests count toward a trip's seats; a
    CANCELLED request keeps its trip_id for history.
    """

    id: str
    user_id: Optional[str]
    pickup: LatLon
    dropoff: LatLon
    price: float = 0.0

    status: RequestStatus = RequestStatus.PENDING
    trip_id: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status != RequestStatus.CANCELLED

    @property
    def direct_km(self) -> float:
        return haversine_km(self.pickup, self.dropoff)

    @staticmethod
    def new(user_id: Optional[str], pickup: LatLon, dropoff: LatLon, price: float = 0.0) -> PassengerRequest:
        return PassengerRequest(
            id=_new_id(),
            user_id=user_id,
            pickup=tuple(pickup),
            dropoff=tuple(dropoff),
            price=price,
        )


@dataclass
class Trip:
    """
    A shared vehicle journey. The path only ever grows: each attached
    request appends its pickup then its dropoff.
    """

    id: str
    vehicle_id: str
    path: List[LatLon]
    status: TripStatus = TripStatus.SCHEDULED

    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_open(self) -> bool:
        return self.status == TripStatus.SCHEDULED

    @staticmethod
    def new(vehicle_id: str, pickup: LatLon, dropoff: LatLon) -> Trip:
        return Trip(id=_new_id(), vehicle_id=vehicle_id, path=[tuple(pickup), tuple(dropoff)])
