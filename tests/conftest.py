import math

import pytest

from dispatch.dispatcher import PoolingDispatcher
from fleet.models import Vehicle
from rides.models import User
from routing.geo import EARTH_RADIUS_KM
from storage.memory import InMemoryRideStore


def km_to_degrees(km: float) -> float:
    # along the equator (or any meridian) 1 degree is the same arc length
    return math.degrees(km / EARTH_RADIUS_KM)


def equator_point(km_east: float):
    """A point on the equator `km_east` kilometres east of (0, 0)."""
    return (0.0, km_to_degrees(km_east))


@pytest.fixture
def mock_airport_location():
    # Robert Gabriel Mugabe International, Harare
    return (-17.9318, 31.0928)


@pytest.fixture
def store():
    return InMemoryRideStore()


@pytest.fixture
def dispatcher(store):
    return PoolingDispatcher(store)


@pytest.fixture
def rider(store):
    return store.add_user(User.new("Test Rider", "rider@example.com"))


@pytest.fixture
def add_vehicles(store):
    def _add(count: int, capacity: int = 4):
        return [store.add_vehicle(Vehicle.new(f"vehicle_{i}", capacity=capacity)) for i in range(count)]
    return _add
