"""
Purpose: Periodic audit for vehicles leaked by a failed claim compensation.
What it does:
Finds BUSY vehicles that have no SCHEDULED trip and frees them.

A vehicle is only touched once its last status change is older than the
fleet policy's grace period: a claim whose open-trip transaction has not
committed yet looks exactly like a leak for a moment.

Intended to run from a scheduler (cron, Celery beat) or the Django
`reconcile_vehicles` management command.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fleet.models import VehicleStatus
from fleet.policy import FleetPolicy, default_fleet_policy
from storage.base import RideStore

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    inspected: int = 0
    released_vehicle_ids: List[str] = field(default_factory=list)
    skipped_in_grace: List[str] = field(default_factory=list)

    @property
    def released_count(self) -> int:
        return len(self.released_vehicle_ids)


def release_orphaned_vehicles(
    store: RideStore,
    policy: Optional[FleetPolicy] = None,
    now: Optional[datetime] = None,
) -> ReconciliationReport:
    policy = policy or default_fleet_policy()
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=policy.orphan_grace_seconds)

    report = ReconciliationReport()
    vehicles_with_trips = {trip.vehicle_id for trip in store.list_open_trips()}

    for vehicle in store.list_vehicles(VehicleStatus.BUSY):
        report.inspected += 1
        if vehicle.id in vehicles_with_trips:
            continue

        if vehicle.status_changed_at is not None and vehicle.status_changed_at > cutoff:
            report.skipped_in_grace.append(vehicle.id)
            continue

        with store.transaction():
            # re-check: a trip may have been opened since the scan above
            if store.open_trip_for_vehicle(vehicle.id) is not None:
                continue
            released = store.compare_and_set_vehicle_status(vehicle.id, VehicleStatus.BUSY, VehicleStatus.AVAILABLE)

        if released:
            logger.warning(f"Released orphaned vehicle {vehicle.id} (BUSY with no open trip)")
            report.released_vehicle_ids.append(vehicle.id)

    logger.info(
        f"Reconciliation inspected {report.inspected} busy vehicles, released {report.released_count}"
    )
    return report
