"""
Purpose: In-memory RideStore.
What it does:

Keeps users, vehicles, trips and requests in dicts behind one re-entrant lock:

- every single operation (including compare-and-set) runs under the lock,
  so it is indivisible with respect to every other worker thread
- transaction() holds the lock for the whole block and snapshots the dicts,
  restoring them if the block raises

Entities are copied on the way in and on the way out, so a stored object is
never mutated in place and a shallow snapshot is enough to roll back.

Good for tests, simulations and single-process deployments. Not durable.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, TypeVar

from fleet.models import Vehicle, VehicleStatus
from rides.models import PassengerRequest, RequestStatus, Trip, TripStatus, User
from routing.geo import LatLon
from .base import EntityNotFound, RideStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _detached(entity: T) -> T:
    return copy.deepcopy(entity)


class InMemoryRideStore(RideStore):

    def __init__(self):
        self._lock = threading.RLock()
        # only touched by the thread holding the lock
        self._tx_depth = 0

        self._users: Dict[str, User] = {}
        self._vehicles: Dict[str, Vehicle] = {}
        self._trips: Dict[str, Trip] = {}
        self._requests: Dict[str, PassengerRequest] = {}

    # --- transactions ---

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._tx_depth == 0
            snapshot = self._snapshot() if outermost else None
            self._tx_depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._restore(snapshot)
                    logger.debug("In-memory transaction rolled back")
                raise
            finally:
                self._tx_depth -= 1

    def _snapshot(self):
        return (dict(self._users), dict(self._vehicles), dict(self._trips), dict(self._requests))

    def _restore(self, snapshot) -> None:
        users, vehicles, trips, requests = snapshot
        self._users = users
        self._vehicles = vehicles
        self._trips = trips
        self._requests = requests

    # --- reads ---

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return _detached(user) if user else None

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        with self._lock:
            # Vehicle is frozen, no copy needed
            return self._vehicles.get(vehicle_id)

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        with self._lock:
            trip = self._trips.get(trip_id)
            return _detached(trip) if trip else None

    def get_request(self, request_id: str) -> Optional[PassengerRequest]:
        with self._lock:
            request = self._requests.get(request_id)
            return _detached(request) if request else None

    def list_open_trips(self) -> List[Trip]:
        with self._lock:
            trips = [trip for trip in self._trips.values() if trip.status == TripStatus.SCHEDULED]
            trips.sort(key=lambda trip: trip.created_at)
            return _detached(trips)

    def list_available_vehicles(self, limit: int) -> List[Vehicle]:
        if limit <= 0:
            return []
        with self._lock:
            available = [vehicle for vehicle in self._vehicles.values() if vehicle.status == VehicleStatus.AVAILABLE]
            return available[:limit]

    def list_vehicles(self, status: Optional[VehicleStatus] = None) -> List[Vehicle]:
        with self._lock:
            return [vehicle for vehicle in self._vehicles.values() if status is None or vehicle.status == status]

    def requests_for_trip(self, trip_id: str) -> List[PassengerRequest]:
        with self._lock:
            return _detached([request for request in self._requests.values() if request.trip_id == trip_id])

    def open_trip_for_vehicle(self, vehicle_id: str) -> Optional[Trip]:
        with self._lock:
            for trip in self._trips.values():
                if trip.vehicle_id == vehicle_id and trip.status == TripStatus.SCHEDULED:
                    return _detached(trip)
            return None

    def count_vehicles(self, status: Optional[VehicleStatus] = None) -> int:
        with self._lock:
            return sum(1 for vehicle in self._vehicles.values() if status is None or vehicle.status == status)

    # --- conditional update ---

    def compare_and_set_vehicle_status(
        self,
        vehicle_id: str,
        expected: VehicleStatus,
        new: VehicleStatus,
    ) -> bool:
        with self._lock:
            vehicle = self._vehicles.get(vehicle_id)
            if vehicle is None or vehicle.status != expected:
                return False
            self._vehicles[vehicle_id] = vehicle.with_status(new, datetime.now(timezone.utc))
            return True

    # --- writes ---

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = _detached(user)
            return _detached(user)

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._lock:
            self._vehicles[vehicle.id] = vehicle
            return vehicle

    def add_request(self, request: PassengerRequest) -> PassengerRequest:
        with self._lock:
            self._requests[request.id] = _detached(request)
            return _detached(request)

    def create_trip(self, vehicle_id: str, path: List[LatLon]) -> Trip:
        with self._lock:
            if vehicle_id not in self._vehicles:
                raise EntityNotFound(f"Vehicle {vehicle_id} not found")
            trip = Trip(id=str(uuid.uuid4()), vehicle_id=vehicle_id, path=[tuple(point) for point in path])
            self._trips[trip.id] = _detached(trip)
            return trip

    def save_trip(self, trip: Trip) -> Trip:
        with self._lock:
            if trip.id not in self._trips:
                raise EntityNotFound(f"Trip {trip.id} not found")
            self._trips[trip.id] = _detached(trip)
            return _detached(trip)

    def save_request(self, request: PassengerRequest) -> PassengerRequest:
        with self._lock:
            if request.id not in self._requests:
                raise EntityNotFound(f"Request {request.id} not found")
            self._requests[request.id] = _detached(request)
            return _detached(request)

    # --- inspection helpers (simulations / audits) ---

    def all_trips(self) -> List[Trip]:
        with self._lock:
            return _detached(list(self._trips.values()))

    def all_requests(self) -> List[PassengerRequest]:
        with self._lock:
            return _detached(list(self._requests.values()))

    def count_requests(self, status: RequestStatus) -> int:
        with self._lock:
            return sum(1 for request in self._requests.values() if request.status == status)
