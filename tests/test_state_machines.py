import pytest

from dispatch.state_machines import (
    RequestStateException,
    TripStateException,
    cancel_request,
    close_trip,
    confirm_request,
    extend_path,
)
from rides.models import PassengerRequest, RequestStatus, Trip, TripStatus


@pytest.fixture
def request_():
    return PassengerRequest.new("u", (0.0, 0.0), (0.0, 0.1))


@pytest.fixture
def trip():
    return Trip.new("vehicle_0", (0.0, 0.0), (0.0, 0.1))


def test_request_lifecycle(request_, trip):
    confirmed = confirm_request(request_, trip.id)
    assert confirmed.status == RequestStatus.CONFIRMED
    assert confirmed.trip_id == trip.id
    # transitions return new objects
    assert request_.status == RequestStatus.PENDING

    cancelled = cancel_request(confirmed)
    assert cancelled.status == RequestStatus.CANCELLED
    assert cancelled.trip_id == trip.id

    with pytest.raises(RequestStateException):
        cancel_request(cancelled)
    with pytest.raises(RequestStateException):
        confirm_request(confirmed, trip.id)


def test_path_can_only_grow_at_the_end(trip):
    extended = extend_path(trip, trip.path + [(0.0, 0.1), (0.0, 0.2)])
    assert len(extended.path) == 4

    with pytest.raises(TripStateException):
        extend_path(trip, [(0.0, 0.1), (0.0, 0.0), (0.0, 0.2)])


def test_closed_trips_are_frozen(trip):
    closed = close_trip(trip)
    assert closed.status == TripStatus.COMPLETED

    with pytest.raises(TripStateException):
        close_trip(closed)
    with pytest.raises(TripStateException):
        extend_path(closed, closed.path + [(1.0, 1.0)])
