import pytest

from fleet.models import Vehicle, VehicleStatus
from rides.models import PassengerRequest, RequestStatus
from storage.base import EntityNotFound, StoreError


def test_transaction_rolls_back_every_write_on_error(store):
    vehicle = store.add_vehicle(Vehicle.new("vehicle_0"))
    request = store.add_request(PassengerRequest.new(None, (1.0, 1.0), (2.0, 2.0)))

    with pytest.raises(StoreError):
        with store.transaction():
            store.compare_and_set_vehicle_status(vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.BUSY)
            trip = store.create_trip(vehicle.id, [request.pickup, request.dropoff])
            request.status = RequestStatus.CONFIRMED
            request.trip_id = trip.id
            store.save_request(request)
            raise StoreError("disk on fire")

    assert store.get_vehicle(vehicle.id).status == VehicleStatus.AVAILABLE
    assert store.list_open_trips() == []
    assert store.get_request(request.id).status == RequestStatus.PENDING


def test_nested_transaction_joins_the_outer_one(store):
    vehicle = store.add_vehicle(Vehicle.new("vehicle_0"))

    with pytest.raises(RuntimeError):
        with store.transaction():
            with store.transaction():
                store.create_trip(vehicle.id, [(0.0, 0.0), (0.0, 1.0)])
            raise RuntimeError("outer fails after inner finished")

    assert store.list_open_trips() == []


def test_reads_are_detached_copies(store):
    request = store.add_request(PassengerRequest.new(None, (1.0, 1.0), (2.0, 2.0)))

    copy = store.get_request(request.id)
    copy.status = RequestStatus.CANCELLED

    assert store.get_request(request.id).status == RequestStatus.PENDING


def test_saving_unknown_entities_raises(store):
    with pytest.raises(EntityNotFound):
        store.save_request(PassengerRequest.new(None, (1.0, 1.0), (2.0, 2.0)))
    with pytest.raises(EntityNotFound):
        store.create_trip("no-such-vehicle", [(0.0, 0.0), (0.0, 1.0)])


def test_open_trip_lookup_and_counts(store):
    first = store.add_vehicle(Vehicle.new("vehicle_0"))
    store.add_vehicle(Vehicle.new("vehicle_1"))
    store.compare_and_set_vehicle_status(first.id, VehicleStatus.AVAILABLE, VehicleStatus.BUSY)
    trip = store.create_trip(first.id, [(0.0, 0.0), (0.0, 1.0)])

    assert store.open_trip_for_vehicle(first.id).id == trip.id
    assert store.open_trip_for_vehicle("vehicle_1") is None
    assert store.count_vehicles() == 2
    assert store.count_vehicles(VehicleStatus.BUSY) == 1
    assert [vehicle.id for vehicle in store.list_available_vehicles(limit=5)] == ["vehicle_1"]
    assert store.list_available_vehicles(limit=0) == []
