"""
Purpose: Central configuration for vehicle allocation.
What it does:

Stores all tunable thresholds/caps for claiming vehicles:

DEFAULT_CAPACITY = 4
CANDIDATE_SCAN_LIMIT = 5
ORPHAN_GRACE_SECONDS = 120

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class FleetPolicy:
    """
    Central configuration for vehicle claiming and release.
    """

    # --- Capacity ---
    # Seats given to a vehicle registered without an explicit capacity.
    default_capacity: int = 4

    # --- Claiming ---
    # How many AVAILABLE vehicles one allocation reads and tries to claim.
    # Exhausting this sample does not mean the fleet is empty.
    candidate_scan_limit: int = 5

    # --- Reconciliation ---
    # A BUSY vehicle without an open trip is only freed once its last status
    # change is older than this, so an in-flight claim is never stolen.
    orphan_grace_seconds: int = 120

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.default_capacity < 1:
            raise ValueError("default_capacity must be >= 1")

        if self.candidate_scan_limit < 1:
            raise ValueError("candidate_scan_limit must be >= 1")

        if self.orphan_grace_seconds < 0:
            raise ValueError("orphan_grace_seconds must be >= 0")


def default_fleet_policy() -> FleetPolicy:
    """
    Convenience factory for the default policy.
    """
    p = FleetPolicy()
    p.validate()
    return p


def fleet_policy_from_env() -> FleetPolicy:
    """
    Build the policy from AIRPOOL_* environment variables, falling back to defaults.
    """
    defaults = FleetPolicy()
    p = FleetPolicy(
        default_capacity=int(os.getenv("AIRPOOL_DEFAULT_CAPACITY", defaults.default_capacity)),
        candidate_scan_limit=int(os.getenv("AIRPOOL_CANDIDATE_SCAN_LIMIT", defaults.candidate_scan_limit)),
        orphan_grace_seconds=int(os.getenv("AIRPOOL_ORPHAN_GRACE_SECONDS", defaults.orphan_grace_seconds)),
    )
    p.validate()
    return p
