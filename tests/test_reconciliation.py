from datetime import datetime, timedelta, timezone

from dispatch.reconciliation import release_orphaned_vehicles
from fleet.models import VehicleStatus
from fleet.policy import FleetPolicy


def _leak(store, vehicle_id):
    # a claim whose open-trip transaction never committed
    store.compare_and_set_vehicle_status(vehicle_id, VehicleStatus.AVAILABLE, VehicleStatus.BUSY)


def test_orphan_is_released_once_the_grace_period_has_passed(store, add_vehicles):
    (vehicle,) = add_vehicles(1)
    _leak(store, vehicle.id)

    later = datetime.now(timezone.utc) + timedelta(minutes=5)
    report = release_orphaned_vehicles(store, FleetPolicy(orphan_grace_seconds=120), now=later)

    assert report.released_vehicle_ids == [vehicle.id]
    assert store.get_vehicle(vehicle.id).status == VehicleStatus.AVAILABLE


def test_recent_claims_are_left_alone(store, add_vehicles):
    (vehicle,) = add_vehicles(1)
    _leak(store, vehicle.id)

    report = release_orphaned_vehicles(store, FleetPolicy(orphan_grace_seconds=120))

    assert report.released_count == 0
    assert report.skipped_in_grace == [vehicle.id]
    assert store.get_vehicle(vehicle.id).status == VehicleStatus.BUSY


def test_vehicles_on_open_trips_are_never_touched(store, dispatcher, rider, add_vehicles):
    add_vehicles(2)
    matched = dispatcher.submit_request(rider.id, (0.0, 0.0), (0.0, 0.1))

    later = datetime.now(timezone.utc) + timedelta(hours=1)
    report = release_orphaned_vehicles(store, now=later)

    assert report.inspected == 1
    assert report.released_count == 0
    assert store.get_vehicle(matched.trip.vehicle_id).status == VehicleStatus.BUSY


def test_sweep_recovers_a_leaked_compensation(store, add_vehicles):
    vehicles = add_vehicles(3)
    for vehicle in vehicles[:2]:
        _leak(store, vehicle.id)

    report = release_orphaned_vehicles(store, FleetPolicy(orphan_grace_seconds=0), now=datetime.now(timezone.utc) + timedelta(seconds=1))

    assert sorted(report.released_vehicle_ids) == ["vehicle_0", "vehicle_1"]
    assert store.count_vehicles(VehicleStatus.BUSY) == 0
