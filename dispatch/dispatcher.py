"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Takes a PENDING passenger request and either attaches it to a compatible open
trip or claims an idle vehicle and opens a new trip for it, committing each
outcome in a single store transaction. Cancellation runs the release path:
the last active passenger out closes the trip and frees the vehicle.

No in-process locks. Every guarantee comes from the store's compare-and-set
and transactions, so any number of dispatchers may run side by side.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from fleet.models import VehicleStatus
from fleet.policy import FleetPolicy, default_fleet_policy
from fleet.selection import claim_vehicle, release_vehicle
from pricing.surge import PricingPolicy, calculate_price, default_pricing_policy
from rides.models import PassengerRequest, RequestStatus, Trip
from rides.pooling.feasibility import CandidateTrip, evaluate_join
from rides.pooling.policy import PoolingPolicy, default_policy
from routing.geo import LatLon, haversine_km, validate_point
from storage.base import RideStore, StoreError
from .outcomes import CancelResult, CancelStatus, MatchResult, MatchStatus, VehicleClaim
from .state_machines.order_state import RequestStateException, cancel_request as cancel_transition, confirm_request
from .state_machines.trip_state import close_trip, extend_path

logger = logging.getLogger(__name__)


class UnknownRequestError(LookupError):
    """Raised when a request id does not exist in the store."""
    pass


class UnknownUserError(LookupError):
    """Raised when a booking names a user the store does not know."""
    pass


class PoolingDispatcher:
    """
    Coordinates passenger requests, trips and vehicles against one RideStore.
    """

    def __init__(
        self,
        store: RideStore,
        pooling_policy: Optional[PoolingPolicy] = None,
        fleet_policy: Optional[FleetPolicy] = None,
        pricing_policy: Optional[PricingPolicy] = None,
    ):
        self.store = store
        self.pooling_policy = pooling_policy or default_policy()
        self.fleet_policy = fleet_policy or default_fleet_policy()
        self.pricing_policy = pricing_policy or default_pricing_policy()

    # --- Public API ---

    def fleet_utilisation(self) -> Tuple[int, int]:
        """(busy vehicles, total vehicles) as read right now."""
        return self.store.count_vehicles(VehicleStatus.BUSY), self.store.count_vehicles()

    def quote_price(self, pickup: LatLon, dropoff: LatLon) -> float:
        pickup = validate_point(pickup)
        dropoff = validate_point(dropoff)
        busy, total = self.fleet_utilisation()
        return calculate_price(haversine_km(pickup, dropoff), busy, total, self.pricing_policy)

    def submit_request(self, user_id: Optional[str], pickup: LatLon, dropoff: LatLon) -> MatchResult:
        """
        Price and store a new PENDING request, then try to match it straight away.
        """
        pickup = validate_point(pickup)
        dropoff = validate_point(dropoff)
        if user_id is not None and self.store.get_user(user_id) is None:
            raise UnknownUserError(f"User {user_id} not found")

        price = self.quote_price(pickup, dropoff)
        request = self.store.add_request(PassengerRequest.new(user_id, pickup, dropoff, price))
        logger.info(f"Request {request.id} created for user {user_id} at price {price}")

        return self.match_request(request.id, pickup, dropoff)

    def match_request(
        self,
        request_id: str,
        pickup: Optional[LatLon] = None,
        dropoff: Optional[LatLon] = None,
    ) -> MatchResult:
        """
        Join an open trip if one admits the request, otherwise open a new one.

        1. Scan SCHEDULED trips against a snapshot read; pick the first one the
           validator admits.
        2. Attach inside one transaction that re-reads the trip and its riders
           and re-validates capacity and deviation on that fresh read. If the
           trip filled up or drifted in the meantime nothing is written and the
           scan starts over (bounded by max_match_attempts).
        3. Otherwise claim a vehicle and open a trip for it.

        pickup/dropoff, when given, replace the stored points and are written
        onto the request in the same transaction that confirms it, so the trip
        path and its passengers' direct distances always agree.

        Validation problems raise before anything is written. A request that
        finds neither a trip nor a vehicle comes back NOT_MATCHED and stays
        PENDING; retrying later is the caller's business.
        """
        request = self.store.get_request(request_id)
        if request is None:
            raise UnknownRequestError(f"Request {request_id} not found")
        if request.status != RequestStatus.PENDING:
            raise RequestStateException(f"Request {request_id} is {request.status.value}, only PENDING requests can be matched")

        pickup = validate_point(pickup if pickup is not None else request.pickup)
        dropoff = validate_point(dropoff if dropoff is not None else request.dropoff)

        for attempt in range(1, self.pooling_policy.max_match_attempts + 1):
            candidate = self._find_joinable_trip(pickup, dropoff)
            if candidate is None:
                break

            try:
                trip = self._attach(request_id, candidate.trip.id, pickup, dropoff)
            except StoreError as exc:
                logger.exception(f"Attaching request {request_id} to trip {candidate.trip.id} failed")
                return MatchResult(request_id, MatchStatus.FAILED, error=str(exc))
            except (RequestStateException, UnknownRequestError) as exc:
                # another worker confirmed or removed the request after our scan
                logger.warning(f"Request {request_id} changed while attaching to trip {candidate.trip.id}: {exc}")
                return MatchResult(request_id, MatchStatus.FAILED, error=str(exc))

            if trip is not None:
                return MatchResult(request_id, MatchStatus.JOINED, trip=trip)

            logger.info(
                f"Trip {candidate.trip.id} no longer admits request {request_id} "
                f"(attempt {attempt}/{self.pooling_policy.max_match_attempts}), rescanning"
            )

        return self._open_trip(request_id, pickup, dropoff)

    def cancel_request(self, request_id: str) -> CancelResult:
        """
        Cancel a PENDING or CONFIRMED request in one transaction.

        If it rode on a trip and was the last active passenger, the trip is
        closed and its vehicle released in that same transaction. Otherwise
        the trip keeps going with its path untouched.
        """
        released = False
        with self.store.transaction():
            request = self.store.get_request_for_update(request_id)
            if request is None:
                return CancelResult(request_id, CancelStatus.NOT_FOUND)
            if request.status == RequestStatus.CANCELLED:
                logger.info(f"Request {request_id} is already cancelled, rejecting")
                return CancelResult(request_id, CancelStatus.ALREADY_CANCELLED, trip_id=request.trip_id)

            self.store.save_request(cancel_transition(request))

            if request.trip_id is None:
                logger.info(f"Cancelled pending request {request_id}")
                return CancelResult(request_id, CancelStatus.CANCELLED)

            trip = self.store.get_trip_for_update(request.trip_id)
            remaining = [
                other for other in self.store.requests_for_trip(request.trip_id)
                if other.id != request.id and other.is_active
            ]
            if remaining or trip is None or not trip.is_open:
                logger.info(f"Cancelled request {request_id}, trip {request.trip_id} keeps {len(remaining)} passengers")
                return CancelResult(request_id, CancelStatus.CANCELLED, trip_id=request.trip_id)

            # last passenger out: close the trip and free the vehicle together
            self.store.save_trip(close_trip(trip))
            released = self.store.compare_and_set_vehicle_status(
                trip.vehicle_id, VehicleStatus.BUSY, VehicleStatus.AVAILABLE
            )
            if not released:
                logger.warning(f"Vehicle {trip.vehicle_id} of closed trip {trip.id} was not BUSY")

        logger.info(f"Cancelled request {request_id}, closed trip {trip.id}")
        return CancelResult(
            request_id,
            CancelStatus.CANCELLED,
            trip_id=trip.id,
            trip_closed=True,
            released_vehicle_id=trip.vehicle_id if released else None,
        )

    # --- Matching helpers ---

    def _load_candidate(self, trip: Trip) -> Optional[CandidateTrip]:
        vehicle = self.store.get_vehicle(trip.vehicle_id)
        if vehicle is None:
            logger.warning(f"Open trip {trip.id} references unknown vehicle {trip.vehicle_id}")
            return None

        active = [request for request in self.store.requests_for_trip(trip.id) if request.is_active]
        return CandidateTrip(trip=trip, capacity=vehicle.capacity, active_requests=active)

    def _find_joinable_trip(self, pickup: LatLon, dropoff: LatLon) -> Optional[CandidateTrip]:
        for trip in self.store.list_open_trips():
            candidate = self._load_candidate(trip)
            if candidate is None:
                continue
            if evaluate_join(candidate, pickup, dropoff, self.pooling_policy).is_admissible:
                return candidate
        return None

    def _attach(self, request_id: str, trip_id: str, pickup: LatLon, dropoff: LatLon) -> Optional[Trip]:
        """
        Returns the extended trip, or None when the fresh read no longer admits the request.
        """
        with self.store.transaction():
            trip = self.store.get_trip_for_update(trip_id)
            if trip is None or not trip.is_open:
                return None

            candidate = self._load_candidate(trip)
            if candidate is None:
                return None

            assessment = evaluate_join(candidate, pickup, dropoff, self.pooling_policy)
            if not assessment.is_admissible:
                return None

            request = self.store.get_request_for_update(request_id)
            if request is None:
                raise UnknownRequestError(f"Request {request_id} not found")

            confirmed = confirm_request(replace(request, pickup=pickup, dropoff=dropoff), trip.id)
            extended = self.store.save_trip(extend_path(trip, assessment.new_path))
            self.store.save_request(confirmed)

        logger.info(
            f"Request {request_id} joined trip {trip_id} "
            f"({assessment.new_total_km:.1f} km of {assessment.max_allowed_km:.1f} km allowed, "
            f"detour ratio {assessment.detour_ratio:.2f})"
        )
        return extended

    def _open_trip(self, request_id: str, pickup: LatLon, dropoff: LatLon) -> MatchResult:
        vehicle = claim_vehicle(self.store, self.fleet_policy)
        if vehicle is None:
            logger.info(f"Request {request_id} stays pending: no admissible trip and no claimable vehicle")
            return MatchResult(
                request_id,
                MatchStatus.NOT_MATCHED,
                claim=VehicleClaim(vehicle_id=None, claimed=False, committed=False),
            )

        # The claim above already committed on its own; from here until the
        # transaction commits, a failure must hand the vehicle back.
        try:
            with self.store.transaction():
                request = self.store.get_request_for_update(request_id)
                if request is None:
                    raise UnknownRequestError(f"Request {request_id} not found")
                trip = self.store.create_trip(vehicle.id, [pickup, dropoff])
                self.store.save_request(confirm_request(replace(request, pickup=pickup, dropoff=dropoff), trip.id))
        except (StoreError, RequestStateException, UnknownRequestError) as exc:
            logger.exception(f"Opening a trip for request {request_id} failed after claiming vehicle {vehicle.id}")
            compensated = self._compensate_claim(vehicle.id)
            return MatchResult(
                request_id,
                MatchStatus.FAILED,
                claim=VehicleClaim(vehicle_id=vehicle.id, claimed=True, committed=False, compensated=compensated),
                error=str(exc),
            )

        logger.info(f"Request {request_id} opened trip {trip.id} on vehicle {vehicle.id}")
        return MatchResult(
            request_id,
            MatchStatus.OPENED,
            trip=trip,
            claim=VehicleClaim(vehicle_id=vehicle.id, claimed=True, committed=True),
        )

    def _compensate_claim(self, vehicle_id: str) -> bool:
        """
        Best effort BUSY -> AVAILABLE after a failed open-trip transaction.
        Not atomic with the original claim: if this fails too the vehicle
        stays BUSY with no trip until the reconciliation sweep frees it.
        """
        try:
            released = release_vehicle(self.store, vehicle_id)
        except StoreError:
            logger.exception(f"Compensating release of vehicle {vehicle_id} failed")
            released = False

        if not released:
            logger.error(f"Vehicle {vehicle_id} left BUSY without a trip, needs reconciliation")
        return released
