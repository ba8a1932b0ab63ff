"""
Purpose: The storage contract the pooling engine is written against.
What it does:

Names the three primitives the engine relies on and nothing else:

- plain reads filtered by status
- a conditional update on one vehicle's status (compare-and-set)
- an all-or-nothing transaction spanning several reads/writes

Implementations:
- storage.memory.InMemoryRideStore (threads, tests, simulations)
- bookings.store.DjangoRideStore (the Django backend)

Rule: the engine never locks anything itself; every guarantee comes from here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from fleet.models import Vehicle, VehicleStatus
from rides.models import PassengerRequest, Trip, User
from routing.geo import LatLon


class StoreError(Exception):
    """Raised when the underlying store cannot complete an operation."""
    pass


class EntityNotFound(StoreError):
    """Raised when a write targets an id the store does not know."""
    pass


class RideStore(ABC):
    """
    Transactional record store for users, vehicles, trips and passenger requests.

    Reads return detached copies: mutating a returned object changes nothing
    until it is handed back through a save method.
    """

    # ---- transactions ----

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """
        All-or-nothing scope. Every read/write made on this store by the
        current worker inside the block commits together or not at all.
        Nested blocks join the outer one.
        """

    # ---- reads ----

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]: ...

    @abstractmethod
    def get_trip(self, trip_id: str) -> Optional[Trip]: ...

    @abstractmethod
    def get_request(self, request_id: str) -> Optional[PassengerRequest]: ...

    def get_trip_for_update(self, trip_id: str) -> Optional[Trip]:
        """
        Fresh read of a trip meant to be written in the surrounding transaction.
        Stores with row locks lock the row here.
        """
        return self.get_trip(trip_id)

    def get_request_for_update(self, request_id: str) -> Optional[PassengerRequest]:
        return self.get_request(request_id)

    @abstractmethod
    def list_open_trips(self) -> List[Trip]:
        """All SCHEDULED trips, oldest first."""

    @abstractmethod
    def list_available_vehicles(self, limit: int) -> List[Vehicle]:
        """Up to `limit` vehicles that were AVAILABLE at read time. No ordering promise."""

    @abstractmethod
    def list_vehicles(self, status: Optional[VehicleStatus] = None) -> List[Vehicle]: ...

    @abstractmethod
    def requests_for_trip(self, trip_id: str) -> List[PassengerRequest]:
        """Every request referencing the trip, cancelled ones included."""

    @abstractmethod
    def open_trip_for_vehicle(self, vehicle_id: str) -> Optional[Trip]: ...

    @abstractmethod
    def count_vehicles(self, status: Optional[VehicleStatus] = None) -> int: ...

    # ---- conditional update ----

    @abstractmethod
    def compare_and_set_vehicle_status(
        self,
        vehicle_id: str,
        expected: VehicleStatus,
        new: VehicleStatus,
    ) -> bool:
        """
        Set the vehicle's status to `new` only if it is `expected` at the moment
        of the write, as one indivisible operation.

        Returns True iff a row changed. Of any number of concurrent callers
        racing on the same transition, at most one gets True.
        """

    # ---- writes ----

    @abstractmethod
    def add_user(self, user: User) -> User: ...

    @abstractmethod
    def add_vehicle(self, vehicle: Vehicle) -> Vehicle: ...

    @abstractmethod
    def add_request(self, request: PassengerRequest) -> PassengerRequest: ...

    @abstractmethod
    def create_trip(self, vehicle_id: str, path: List[LatLon]) -> Trip:
        """Insert a new SCHEDULED trip for the vehicle."""

    @abstractmethod
    def save_trip(self, trip: Trip) -> Trip:
        """Persist path and status of an existing trip."""

    @abstractmethod
    def save_request(self, request: PassengerRequest) -> PassengerRequest:
        """Persist status, trip reference and price of an existing request."""
