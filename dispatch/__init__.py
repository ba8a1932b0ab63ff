#Expose the high-level pipeline pieces:
#PoolingDispatcher (the "one call" entry point for match / cancel)
#typed outcomes
#the orphaned-vehicle reconciliation sweep

from .dispatcher import PoolingDispatcher, UnknownRequestError, UnknownUserError
from .outcomes import CancelResult, CancelStatus, MatchResult, MatchStatus, VehicleClaim
from .reconciliation import ReconciliationReport, release_orphaned_vehicles

__all__ = [
    "CancelResult",
    "CancelStatus",
    "MatchResult",
    "MatchStatus",
    "PoolingDispatcher",
    "ReconciliationReport",
    "UnknownRequestError",
    "UnknownUserError",
    "VehicleClaim",
    "release_orphaned_vehicles",
]
