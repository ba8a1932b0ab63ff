"""
Fleet domain package.

Public API:
- Vehicle, VehicleStatus
- FleetPolicy
- claim_vehicle / release_vehicle
"""
from .models import Vehicle, VehicleStatus
from .policy import FleetPolicy, default_fleet_policy, fleet_policy_from_env

__all__ = [
    "FleetPolicy",
    "Vehicle",
    "VehicleStatus",
    "default_fleet_policy",
    "fleet_policy_from_env",
]
