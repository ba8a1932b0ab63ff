# rides/pooling/feasibility.py

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from routing.geo import LatLon, haversine_km, path_length_km
from ..models import PassengerRequest, Trip
from .policy import PoolingPolicy


@dataclass(frozen=True)
class CandidateTrip:
    """
    Snapshot of an open trip as the validator sees it: its current path,
    the seats its vehicle offers and the requests still riding on it.
    """
    trip: Trip
    capacity: int
    active_requests: Sequence[PassengerRequest]

    @property
    def seats_taken(self) -> int:
        return len(self.active_requests)

    @property
    def is_full(self) -> bool:
        return self.seats_taken >= self.capacity


@dataclass(frozen=True)
class JoinAssessment:
    """
    Output of evaluating one new passenger against one candidate trip.
    """
    is_admissible: bool
    new_path: List[LatLon]
    new_total_km: float
    sum_direct_km: float
    max_allowed_km: float

    # Diagnostics (optional but useful)
    reason: Optional[str] = None

    @property
    def detour_ratio(self) -> float:
        if self.sum_direct_km <= 0:
            return float("inf")
        return self.new_total_km / self.sum_direct_km


def sum_direct_km(
    requests: Sequence[PassengerRequest],
    pickup: LatLon,
    dropoff: LatLon,
) -> float:
    """
    Sum of individual (pickup -> dropoff) distances for the riding requests
    plus the new one. This is the baseline for the deviation cap.
    """
    total = haversine_km(pickup, dropoff)
    for request in requests:
        total += request.direct_km
    return total


def evaluate_join(
    candidate: CandidateTrip,
    pickup: LatLon,
    dropoff: LatLon,
    policy: PoolingPolicy,
) -> JoinAssessment:
    """
    Decide whether a new passenger may join the candidate trip.

    1) Capacity: reject if the riding requests already fill the vehicle.
    2) Deviation: the path with pickup and dropoff appended must not be longer
       than sum(direct distances) * (1 + max_deviation).

    Stops are appended, never reordered. No side effects.
    """
    # callers may hand over every attached request, cancelled ones included
    riding = replace(candidate, active_requests=[r for r in candidate.active_requests if r.is_active])
    active = riding.active_requests
    new_path = list(candidate.trip.path) + [tuple(pickup), tuple(dropoff)]

    if riding.is_full:
        return JoinAssessment(
            is_admissible=False,
            new_path=new_path,
            new_total_km=float("inf"),
            sum_direct_km=0.0,
            max_allowed_km=0.0,
            reason="trip at capacity",
        )

    direct = sum_direct_km(active, pickup, dropoff)
    new_total = path_length_km(new_path)
    max_allowed = direct * (1 + policy.max_deviation)

    admissible = new_total <= max_allowed
    return JoinAssessment(
        is_admissible=admissible,
        new_path=new_path,
        new_total_km=new_total,
        sum_direct_km=direct,
        max_allowed_km=max_allowed,
        reason=None if admissible else "deviation cap exceeded",
    )


def can_join(
    candidate: CandidateTrip,
    pickup: LatLon,
    dropoff: LatLon,
    policy: PoolingPolicy,
) -> bool:
    return evaluate_join(candidate, pickup, dropoff, policy).is_admissible
