"""
Purpose: RideStore on top of the Django ORM.
What it does:

- compare-and-set is a single conditional UPDATE:
    Vehicle.objects.filter(pk=..., status=expected).update(status=new)
  and succeeds iff exactly one row changed, so the database decides the race
- transaction() is transaction.atomic(); nested blocks become savepoints
- *_for_update reads use select_for_update() so attach and cancel serialise
  on the trip row (no-op on SQLite, which locks the whole database anyway)

Database failures surface as storage.base.StoreError so the dispatcher can
tell them apart from validation problems.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from fleet.models import Vehicle, VehicleStatus
from rides.models import PassengerRequest, RequestStatus, Trip, TripStatus, User
from routing.geo import LatLon
from storage.base import EntityNotFound, RideStore, StoreError
from .models import Booking, Trip as TripRow, Vehicle as VehicleRow

logger = logging.getLogger(__name__)


def _store_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            logger.error(f"{method.__name__} failed: {exc}")
            raise StoreError(str(exc)) from exc
    return wrapper


# --- row <-> engine conversions ---

def vehicle_from_row(row: VehicleRow) -> Vehicle:
    return Vehicle(
        id=row.pk,
        status=VehicleStatus(row.status),
        capacity=row.capacity,
        name=row.name or None,
        status_changed_at=row.status_changed_at,
    )


def trip_from_row(row: TripRow) -> Trip:
    return Trip(
        id=row.pk,
        vehicle_id=row.vehicle_id,
        path=[(float(lat), float(lng)) for lat, lng in row.path],
        status=TripStatus(row.status),
        created_at=row.created_at,
    )


def request_from_row(row: Booking) -> PassengerRequest:
    return PassengerRequest(
        id=row.pk,
        user_id=str(row.user_id) if row.user_id is not None else None,
        pickup=(row.pickup_lat, row.pickup_lng),
        dropoff=(row.dropoff_lat, row.dropoff_lng),
        price=float(row.price),
        status=RequestStatus(row.status),
        trip_id=row.trip_id,
        created_at=row.created_at,
    )


class DjangoRideStore(RideStore):

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            raise StoreError(str(exc)) from exc

    # --- reads ---

    @_store_errors
    def get_user(self, user_id: str) -> Optional[User]:
        try:
            row = get_user_model().objects.filter(pk=user_id).first()
        except (TypeError, ValueError):
            # not a valid primary key at all
            return None
        if row is None:
            return None
        return User(id=str(row.pk), name=row.get_full_name() or row.username, email=row.email or None)

    @_store_errors
    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        row = VehicleRow.objects.filter(pk=vehicle_id).first()
        return vehicle_from_row(row) if row else None

    @_store_errors
    def get_trip(self, trip_id: str) -> Optional[Trip]:
        row = TripRow.objects.filter(pk=trip_id).first()
        return trip_from_row(row) if row else None

    @_store_errors
    def get_request(self, request_id: str) -> Optional[PassengerRequest]:
        row = Booking.objects.filter(pk=request_id).first()
        return request_from_row(row) if row else None

    @_store_errors
    def get_trip_for_update(self, trip_id: str) -> Optional[Trip]:
        row = TripRow.objects.select_for_update().filter(pk=trip_id).first()
        return trip_from_row(row) if row else None

    @_store_errors
    def get_request_for_update(self, request_id: str) -> Optional[PassengerRequest]:
        row = Booking.objects.select_for_update().filter(pk=request_id).first()
        return request_from_row(row) if row else None

    @_store_errors
    def list_open_trips(self) -> List[Trip]:
        rows = TripRow.objects.filter(status=TripRow.Status.SCHEDULED).order_by('created_at')
        return [trip_from_row(row) for row in rows]

    @_store_errors
    def list_available_vehicles(self, limit: int) -> List[Vehicle]:
        if limit <= 0:
            return []
        # longest-idle first spreads work across the fleet
        rows = VehicleRow.objects.filter(status=VehicleRow.Status.AVAILABLE).order_by('status_changed_at')[:limit]
        return [vehicle_from_row(row) for row in rows]

    @_store_errors
    def list_vehicles(self, status: Optional[VehicleStatus] = None) -> List[Vehicle]:
        rows = VehicleRow.objects.all()
        if status is not None:
            rows = rows.filter(status=status.value)
        return [vehicle_from_row(row) for row in rows]

    @_store_errors
    def requests_for_trip(self, trip_id: str) -> List[PassengerRequest]:
        return [request_from_row(row) for row in Booking.objects.filter(trip_id=trip_id)]

    @_store_errors
    def open_trip_for_vehicle(self, vehicle_id: str) -> Optional[Trip]:
        row = TripRow.objects.filter(vehicle_id=vehicle_id, status=TripRow.Status.SCHEDULED).first()
        return trip_from_row(row) if row else None

    @_store_errors
    def count_vehicles(self, status: Optional[VehicleStatus] = None) -> int:
        rows = VehicleRow.objects.all()
        if status is not None:
            rows = rows.filter(status=status.value)
        return rows.count()

    # --- conditional update ---

    @_store_errors
    def compare_and_set_vehicle_status(self, vehicle_id: str, expected: VehicleStatus, new: VehicleStatus) -> bool:
        updated = VehicleRow.objects.filter(pk=vehicle_id, status=expected.value).update(
            status=new.value,
            status_changed_at=timezone.now(),
        )
        return updated == 1

    # --- writes ---

    @_store_errors
    def add_user(self, user: User) -> User:
        row = get_user_model().objects.create_user(username=user.name, email=user.email or "")
        return User(id=str(row.pk), name=row.username, email=row.email or None)

    @_store_errors
    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        row = VehicleRow.objects.create(
            id=vehicle.id,
            name=vehicle.name or "",
            capacity=vehicle.capacity,
            status=vehicle.status.value,
            status_changed_at=vehicle.status_changed_at or timezone.now(),
        )
        return vehicle_from_row(row)

    @_store_errors
    def add_request(self, request: PassengerRequest) -> PassengerRequest:
        row = Booking.objects.create(
            id=request.id,
            user_id=request.user_id,
            pickup_lat=request.pickup[0],
            pickup_lng=request.pickup[1],
            dropoff_lat=request.dropoff[0],
            dropoff_lng=request.dropoff[1],
            price=round(request.price, 2),
            status=request.status.value,
            trip_id=request.trip_id,
        )
        return request_from_row(row)

    @_store_errors
    def create_trip(self, vehicle_id: str, path: List[LatLon]) -> Trip:
        if not VehicleRow.objects.filter(pk=vehicle_id).exists():
            raise EntityNotFound(f"Vehicle {vehicle_id} not found")
        # savepoint so a constraint violation leaves the outer transaction usable
        with transaction.atomic():
            row = TripRow.objects.create(vehicle_id=vehicle_id, path=[list(point) for point in path])
        return trip_from_row(row)

    @_store_errors
    def save_trip(self, trip: Trip) -> Trip:
        updated = TripRow.objects.filter(pk=trip.id).update(
            path=[list(point) for point in trip.path],
            status=trip.status.value,
            updated_at=timezone.now(),
        )
        if not updated:
            raise EntityNotFound(f"Trip {trip.id} not found")
        return trip

    @_store_errors
    def save_request(self, request: PassengerRequest) -> PassengerRequest:
        updated = Booking.objects.filter(pk=request.id).update(
            pickup_lat=request.pickup[0],
            pickup_lng=request.pickup[1],
            dropoff_lat=request.dropoff[0],
            dropoff_lng=request.dropoff[1],
            status=request.status.value,
            trip_id=request.trip_id,
            price=round(request.price, 2),
            updated_at=timezone.now(),
        )
        if not updated:
            raise EntityNotFound(f"Request {request.id} not found")
        return request
