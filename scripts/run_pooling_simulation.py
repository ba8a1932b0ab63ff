import argparse
import csv
import os
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import List

import pandas as pd

from dispatch import MatchStatus, PoolingDispatcher
from fleet.models import Vehicle, VehicleStatus
from rides.models import RequestStatus
from storage.memory import InMemoryRideStore

def load_vehicles(filepath) -> List[Vehicle]:
    df = pd.read_csv(filepath)
    return [
        Vehicle.new(row.vehicle_id, capacity=int(row.capacity), name=row.name)
        for row in df.itertuples(index=False)
    ]

def load_requests(filepath, limit=None) -> pd.DataFrame:
    df = pd.read_csv(filepath).sort_values("created_at")
    if limit:
        df = df.head(limit)
    return df

def check_invariants(store: InMemoryRideStore) -> List[str]:
    """
    Audits the end state. Returns a list of violations (empty when healthy).
    """
    problems = []
    open_trips = store.list_open_trips()

    vehicle_ids = [trip.vehicle_id for trip in open_trips]
    if len(vehicle_ids) != len(set(vehicle_ids)):
        problems.append("a vehicle serves more than one open trip")

    busy = store.count_vehicles(VehicleStatus.BUSY)
    if busy != len(open_trips):
        problems.append(f"{busy} busy vehicles but {len(open_trips)} open trips")

    for trip in open_trips:
        riders = [r for r in store.requests_for_trip(trip.id) if r.is_active]
        capacity = store.get_vehicle(trip.vehicle_id).capacity
        if len(riders) > capacity:
            problems.append(f"trip {trip.id} carries {len(riders)} passengers in {capacity} seats")

    return problems

def run_simulation(requests_file, vehicles_file, workers=16, limit=None):
    print("=== STARTING AIRPORT POOLING SIMULATION ===")

    # 1. Load Data
    store = InMemoryRideStore()
    for vehicle in load_vehicles(vehicles_file):
        store.add_vehicle(vehicle)
    requests = load_requests(requests_file, limit)
    print(f"Loaded {len(requests)} Requests and {store.count_vehicles()} Vehicles.\n")

    dispatcher = PoolingDispatcher(store)

    # 2. Fire every request at once from a worker pool
    print(f"Submitting with {workers} concurrent workers...")
    start_time = time.time()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                dispatcher.submit_request,
                None,
                (row.pickup_lat, row.pickup_lon),
                (row.dropoff_lat, row.dropoff_lon),
            )
            for row in requests.itertuples(index=False)
        ]
        results = [future.result() for future in futures]
    elapsed = time.time() - start_time

    outcomes = Counter(result.status for result in results)
    print(f"Processed {len(results)} requests in {elapsed:.2f}s.\n")

    # 3. Write per-trip results next to the script
    base_dir = os.path.dirname(os.path.abspath(__file__))
    output_path = os.path.join(base_dir, "pooling_results.csv")

    with open(output_path, "w", newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["trip_id", "vehicle_id", "passengers", "stops", "total_price"])
        for trip in store.all_trips():
            riders = [r for r in store.requests_for_trip(trip.id) if r.status == RequestStatus.CONFIRMED]
            writer.writerow([trip.id, trip.vehicle_id, len(riders), len(trip.path), round(sum(r.price for r in riders), 2)])

    print("--- Outcome Summary ---")
    for match_status in MatchStatus:
        print(f"  {match_status.value}: {outcomes.get(match_status, 0)}")

    confirmed = store.count_requests(RequestStatus.CONFIRMED)
    trips = len(store.all_trips())
    if trips:
        print(f"\nAverage passengers per trip: {confirmed / trips:.2f}")

    problems = check_invariants(store)
    print("\n=== SIMULATION COMPLETE ===")
    if problems:
        for problem in problems:
            print(f"[VIOLATION] {problem}")
    else:
        print("[OK] Fleet state is consistent")
    print(f"Results written to '{output_path}'.")
    return problems

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Replay a burst of airport requests against an in-memory fleet.")
    parser.add_argument("--requests", default="mock_airport_requests.csv")
    parser.add_argument("--vehicles", default="mock_vehicles.csv")
    parser.add_argument("--workers", type=int, default=16)
    parser.add_argument("--limit", type=int, default=None)
    args = parser.parse_args()

    run_simulation(args.requests, args.vehicles, workers=args.workers, limit=args.limit)
