import threading
from collections import Counter

from dispatch.dispatcher import PoolingDispatcher
from dispatch.outcomes import CancelStatus, MatchStatus
from fleet.models import VehicleStatus
from rides.models import RequestStatus, TripStatus
from tests.conftest import equator_point


def _run_together(jobs):
    """
    Run every callable in `jobs` on its own thread, released at the same
    instant by a barrier. Returns results in job order.
    """
    barrier = threading.Barrier(len(jobs))
    results = [None] * len(jobs)
    errors = []

    def run(index, job):
        barrier.wait()
        try:
            results[index] = job()
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(i, job)) for i, job in enumerate(jobs)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    return results


def assert_fleet_consistent(store):
    open_trips = store.list_open_trips()

    # 1. No vehicle serves two open trips
    vehicle_ids = [trip.vehicle_id for trip in open_trips]
    assert len(vehicle_ids) == len(set(vehicle_ids))

    # 2. Busy vehicles and open trips are the same set
    busy = {vehicle.id for vehicle in store.list_vehicles(VehicleStatus.BUSY)}
    assert busy == set(vehicle_ids)

    # 3. Seats are never overbooked and an open trip always has a passenger
    for trip in open_trips:
        riders = [request for request in store.requests_for_trip(trip.id) if request.is_active]
        assert 1 <= len(riders) <= store.get_vehicle(trip.vehicle_id).capacity

    # 4. Every confirmed request rides on an open trip
    for request in store.all_requests():
        if request.status == RequestStatus.CONFIRMED:
            assert store.get_trip(request.trip_id).status == TripStatus.SCHEDULED


def test_twenty_simultaneous_requests_on_five_vehicles(store, rider, add_vehicles):
    add_vehicles(5)
    dispatcher = PoolingDispatcher(store)

    jobs = [
        (lambda i=i: dispatcher.submit_request(rider.id, (10 + i * 0.01, 10.0), (11 + i * 0.01, 11.0)))
        for i in range(20)
    ]
    results = _run_together(jobs)
    outcomes = Counter(result.status for result in results)

    assert MatchStatus.FAILED not in outcomes
    assert len(store.all_trips()) <= 5
    assert outcomes[MatchStatus.OPENED] == len(store.all_trips())
    assert store.count_vehicles(VehicleStatus.BUSY) == len(store.list_open_trips())

    for result in results:
        expected = RequestStatus.CONFIRMED if result.matched else RequestStatus.PENDING
        assert store.get_request(result.request_id).status == expected

    assert_fleet_consistent(store)


def test_poolable_burst_fills_trips_without_overbooking(store, rider, add_vehicles):
    """
    Chained rides along the equator all pool with each other, so the burst
    should be absorbed by a couple of vehicles filled to capacity.
    """
    add_vehicles(5, capacity=3)
    dispatcher = PoolingDispatcher(store)

    jobs = [
        (lambda i=i: dispatcher.submit_request(rider.id, equator_point(i), equator_point(i + 1)))
        for i in range(12)
    ]
    results = _run_together(jobs)

    assert all(result.status != MatchStatus.FAILED for result in results)
    assert_fleet_consistent(store)


def test_cancellations_racing_new_bookings_keep_the_fleet_consistent(store, rider, add_vehicles):
    add_vehicles(4, capacity=2)
    dispatcher = PoolingDispatcher(store)

    booked = [dispatcher.submit_request(rider.id, equator_point(i), equator_point(i + 2)) for i in range(8)]

    jobs = [(lambda r=r: dispatcher.cancel_request(r.request_id)) for r in booked]
    jobs += [
        (lambda i=i: dispatcher.submit_request(rider.id, equator_point(50 + i), equator_point(52 + i)))
        for i in range(8)
    ]
    results = _run_together(jobs)

    assert all(result.status == CancelStatus.CANCELLED for result in results[:8])
    assert all(result.status != MatchStatus.FAILED for result in results[8:])
    assert_fleet_consistent(store)
