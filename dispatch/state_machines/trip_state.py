from dataclasses import replace
from typing import List

from rides.models import Trip, TripStatus
from routing.geo import LatLon


class TripStateException(Exception):
    """Raised when an invalid trip transition is attempted."""
    pass


def extend_path(trip: Trip, new_path: List[LatLon]) -> Trip:
    """
    Attach a passenger's stops to an open trip.
    The path is append-only, so the new path must start with the current one.
    """
    if trip.status != TripStatus.SCHEDULED:
        raise TripStateException(f"Cannot extend trip {trip.id}, it is {trip.status.value}")

    current = [tuple(point) for point in trip.path]
    if [tuple(point) for point in new_path[:len(current)]] != current:
        raise TripStateException(f"New path for trip {trip.id} does not extend the current path")

    return replace(trip, path=[tuple(point) for point in new_path])


def close_trip(trip: Trip) -> Trip:
    """
    SCHEDULED -> COMPLETED. Used both for trips that ended and for trips
    emptied by cancellations.
    """
    if trip.status != TripStatus.SCHEDULED:
        raise TripStateException(f"Trip {trip.id} is already {trip.status.value}")

    return replace(trip, status=TripStatus.COMPLETED)
