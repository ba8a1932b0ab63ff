"""
Purpose: Exclusive acquisition of an idle vehicle for a new trip.
What it does:
Reads a small sample of AVAILABLE vehicles and walks it, trying the store's
conditional AVAILABLE -> BUSY transition on each until one sticks.
"""

import logging
from typing import List, Optional

from storage.base import RideStore
from .models import Vehicle, VehicleStatus
from .policy import FleetPolicy, default_fleet_policy

logger = logging.getLogger(__name__)


def filter_claimable_vehicles(vehicles: List[Vehicle], required_capacity: int = 1) -> List[Vehicle]:
    """
    Returns only vehicles that were available at read time and have
    enough seats for the trip's first passenger.
    """
    claimable = []

    for vehicle in vehicles:
        if not vehicle.is_available:
            continue

        if vehicle.capacity < required_capacity:
            continue

        claimable.append(vehicle)

    return claimable


def claim_vehicle(store: RideStore, policy: Optional[FleetPolicy] = None) -> Optional[Vehicle]:
    """
    Claim one idle vehicle, or return None when the sampled candidates are exhausted.

    Each claim attempt is a single compare-and-set against the store, never a
    read-then-write, so of any number of concurrent callers only one can win a
    given vehicle. Losing a race is expected under load and simply moves on to
    the next candidate. None does not mean the fleet is empty, only that this
    sample was.
    """
    policy = policy or default_fleet_policy()

    candidates = filter_claimable_vehicles(
        store.list_available_vehicles(limit=policy.candidate_scan_limit)
    )

    for vehicle in candidates:
        if store.compare_and_set_vehicle_status(vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.BUSY):
            logger.info(f"Claimed vehicle {vehicle.id}")
            return store.get_vehicle(vehicle.id) or vehicle.with_status(VehicleStatus.BUSY)

        # Someone else flipped it between our read and our write
        logger.debug(f"Contention miss on vehicle {vehicle.id}, trying next candidate")

    logger.info(f"No vehicle claimed from {len(candidates)} candidates")
    return None


def release_vehicle(store: RideStore, vehicle_id: str) -> bool:
    """
    BUSY -> AVAILABLE as a conditional transition. Returns True iff this call freed it.
    """
    released = store.compare_and_set_vehicle_status(vehicle_id, VehicleStatus.BUSY, VehicleStatus.AVAILABLE)
    if released:
        logger.info(f"Released vehicle {vehicle_id}")
    return released
