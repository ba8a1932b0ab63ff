from dataclasses import replace

from django.core.management.base import BaseCommand

from dispatch import release_orphaned_vehicles
from fleet.policy import fleet_policy_from_env
from bookings.store import DjangoRideStore


class Command(BaseCommand):
    help = "Release vehicles left BUSY without an open trip (failed claim compensation)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--grace-seconds",
            type=int,
            default=None,
            help="Only touch vehicles whose status has not changed for this long "
                 "(defaults to AIRPOOL_ORPHAN_GRACE_SECONDS).",
        )

    def handle(self, *args, **options):
        policy = fleet_policy_from_env()
        if options["grace_seconds"] is not None:
            policy = replace(policy, orphan_grace_seconds=options["grace_seconds"])
            policy.validate()

        report = release_orphaned_vehicles(DjangoRideStore(), policy)

        for vehicle_id in report.released_vehicle_ids:
            self.stdout.write(f"Released {vehicle_id}")
        self.stdout.write(self.style.SUCCESS(
            f"Inspected {report.inspected} busy vehicles, released {report.released_count}, "
            f"{len(report.skipped_in_grace)} still in grace period"
        ))
