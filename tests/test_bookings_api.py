from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking, Trip, Vehicle
from bookings.store import DjangoRideStore
from fleet.models import VehicleStatus
from storage.base import StoreError
from tests.conftest import equator_point

pytestmark = pytest.mark.django_db


def _booking_payload(pickup_km, dropoff_km):
    pickup, dropoff = equator_point(pickup_km), equator_point(dropoff_km)
    return {
        "pickup_lat": pickup[0],
        "pickup_lng": pickup[1],
        "dropoff_lat": dropoff[0],
        "dropoff_lng": dropoff[1],
    }


@pytest.fixture
def passenger(django_user_model):
    return django_user_model.objects.create_user(username="passenger", password="pass12345")


@pytest.fixture
def operator(django_user_model):
    return django_user_model.objects.create_user(username="operator", password="pass12345", role="OPERATOR")


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def fleet():
    return [Vehicle.objects.create(id=f"vehicle_{i}", name=f"Shuttle {i}") for i in range(2)]


def test_register_and_fetch_profile():
    client = APIClient()

    response = client.post(
        "/api/v1/auth/register/",
        {"username": "newrider", "password": "pass12345", "email": "new@example.com"},
        format="json",
    )
    assert response.status_code == 201

    client.login(username="newrider", password="pass12345")
    me = client.get("/api/v1/auth/me/")
    assert me.status_code == 200
    assert me.data["username"] == "newrider"
    assert me.data["role"] == "PASSENGER"


def test_booking_opens_then_joins_a_trip(passenger, client_for, fleet):
    client = client_for(passenger)

    first = client.post("/api/v1/bookings/", _booking_payload(0, 10), format="json")
    assert first.status_code == 201
    assert first.data["match_status"] == "OPENED"
    assert first.data["booking"]["status"] == "CONFIRMED"
    assert first.data["booking"]["price"] == "170.00"

    second = client.post("/api/v1/bookings/", _booking_payload(10, 15), format="json")
    assert second.status_code == 201
    assert second.data["match_status"] == "JOINED"
    assert second.data["trip"] == first.data["trip"]

    trip = Trip.objects.get(pk=first.data["trip"])
    assert len(trip.path) == 4
    assert Vehicle.objects.filter(status=Vehicle.Status.BUSY).count() == 1


def test_booking_without_vehicles_stays_pending(passenger, client_for):
    response = client_for(passenger).post("/api/v1/bookings/", _booking_payload(0, 10), format="json")

    assert response.status_code == 201
    assert response.data["match_status"] == "NOT_MATCHED"
    assert Booking.objects.get().status == Booking.Status.PENDING


def test_invalid_coordinates_are_rejected_before_writing(passenger, client_for, fleet):
    client = client_for(passenger)

    out_of_range = client.post(
        "/api/v1/bookings/",
        {"pickup_lat": 91, "pickup_lng": 0, "dropoff_lat": 0, "dropoff_lng": 0},
        format="json",
    )
    missing = client.post("/api/v1/bookings/", {"pickup_lat": 1}, format="json")

    assert out_of_range.status_code == 400
    assert missing.status_code == 400
    assert Booking.objects.count() == 0
    assert Vehicle.objects.filter(status=Vehicle.Status.BUSY).count() == 0


def test_cancel_releases_vehicle_and_rejects_second_cancel(passenger, client_for, fleet):
    client = client_for(passenger)
    booking_id = client.post("/api/v1/bookings/", _booking_payload(0, 10), format="json").data["booking"]["id"]

    cancelled = client.post(f"/api/v1/bookings/{booking_id}/cancel/")
    assert cancelled.status_code == 200
    assert cancelled.data["trip_closed"] is True
    assert Vehicle.objects.filter(status=Vehicle.Status.BUSY).count() == 0
    assert Trip.objects.get().status == Trip.Status.COMPLETED

    again = client.post(f"/api/v1/bookings/{booking_id}/cancel/")
    assert again.status_code == 400

    missing = client.post("/api/v1/bookings/no-such-booking/cancel/")
    assert missing.status_code == 404


def test_passengers_only_see_their_own_bookings(passenger, operator, client_for, django_user_model, fleet):
    other = django_user_model.objects.create_user(username="other", password="pass12345")
    client_for(passenger).post("/api/v1/bookings/", _booking_payload(0, 10), format="json")
    client_for(other).post("/api/v1/bookings/", _booking_payload(100, 110), format="json")

    assert len(client_for(passenger).get("/api/v1/bookings/").data) == 1
    assert len(client_for(operator).get("/api/v1/bookings/").data) == 2


def test_vehicle_status_cannot_be_set_through_the_api(operator, passenger, client_for):
    client = client_for(operator)

    created = client.post("/api/v1/vehicles/", {"name": "Van"}, format="json")
    assert created.status_code == 201
    assert created.data["capacity"] == 4
    assert created.data["status"] == "AVAILABLE"

    patched = client.patch(f"/api/v1/vehicles/{created.data['id']}/", {"status": "BUSY", "capacity": 6}, format="json")
    assert patched.status_code == 200
    assert patched.data["status"] == "AVAILABLE"
    assert patched.data["capacity"] == 6

    forbidden = client_for(passenger).post("/api/v1/vehicles/", {"name": "Sneaky"}, format="json")
    assert forbidden.status_code == 403


def test_vehicle_capacity_cannot_drop_below_its_riders(operator, passenger, client_for):
    van = Vehicle.objects.create(id="van", name="Van", capacity=4)
    riders = client_for(passenger)
    booked = [
        riders.post("/api/v1/bookings/", _booking_payload(pickup_km, dropoff_km), format="json")
        for pickup_km, dropoff_km in [(0, 10), (10, 12), (12, 14)]
    ]
    assert [response.data["match_status"] for response in booked] == ["OPENED", "JOINED", "JOINED"]
    # one of them leaves, two still ride
    Booking.objects.filter(pk=booked[2].data["booking"]["id"]).update(status=Booking.Status.CANCELLED)

    client = client_for(operator)
    shrunk = client.patch(f"/api/v1/vehicles/{van.id}/", {"capacity": 1}, format="json")
    assert shrunk.status_code == 400
    assert "capacity" in shrunk.data
    van.refresh_from_db()
    assert van.capacity == 4

    exact = client.patch(f"/api/v1/vehicles/{van.id}/", {"capacity": 2}, format="json")
    assert exact.status_code == 200
    assert exact.data["capacity"] == 2


def test_trips_and_health(passenger, client_for, fleet):
    client = client_for(passenger)
    client.post("/api/v1/bookings/", _booking_payload(0, 10), format="json")

    trips = client.get("/api/v1/trips/")
    assert trips.status_code == 200
    assert len(trips.data) == 1
    assert len(trips.data[0]["bookings"]) == 1

    health = APIClient().get("/health/")
    assert health.status_code == 200
    assert health.data == {"status": "ok", "vehicles": 2, "busy_vehicles": 1, "open_trips": 1}


def test_reconcile_command_frees_stuck_vehicles():
    Vehicle.objects.create(
        id="stuck",
        status=Vehicle.Status.BUSY,
        status_changed_at=timezone.now() - timedelta(hours=1),
    )
    Vehicle.objects.create(id="just_claimed", status=Vehicle.Status.BUSY)
    out = StringIO()

    call_command("reconcile_vehicles", "--grace-seconds", "60", stdout=out)

    assert Vehicle.objects.get(pk="stuck").status == Vehicle.Status.AVAILABLE
    assert Vehicle.objects.get(pk="just_claimed").status == Vehicle.Status.BUSY
    assert "released 1" in out.getvalue()


def test_store_compare_and_set_and_one_open_trip_per_vehicle(fleet):
    store = DjangoRideStore()

    assert store.compare_and_set_vehicle_status("vehicle_0", VehicleStatus.AVAILABLE, VehicleStatus.BUSY)
    assert not store.compare_and_set_vehicle_status("vehicle_0", VehicleStatus.AVAILABLE, VehicleStatus.BUSY)

    store.create_trip("vehicle_0", [equator_point(0), equator_point(1)])
    with pytest.raises(StoreError):
        store.create_trip("vehicle_0", [equator_point(2), equator_point(3)])

    assert store.open_trip_for_vehicle("vehicle_0") is not None
    assert store.get_user("not-a-number") is None
