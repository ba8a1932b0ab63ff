"""
Purpose: Typed results handed back by the dispatcher.
What it does:
Lets callers (HTTP views, scripts, the reconciliation job) tell apart
"joined a trip", "opened a trip", "still pending" and "failed", and for a
failed open-trip attempt whether the claimed vehicle was given back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rides.models import Trip


class MatchStatus(str, Enum):
    JOINED = "JOINED"            # attached to an existing open trip
    OPENED = "OPENED"            # claimed a vehicle and opened a new trip
    NOT_MATCHED = "NOT_MATCHED"  # no admissible trip, no claimable vehicle: stays PENDING
    FAILED = "FAILED"            # a transaction aborted


class CancelStatus(str, Enum):
    CANCELLED = "CANCELLED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class VehicleClaim:
    """
    Two-phase record of an open-trip attempt.

    claimed:     the AVAILABLE -> BUSY compare-and-set succeeded
    committed:   the trip + request transaction committed
    compensated: after a failed commit, whether the vehicle went back to
                 AVAILABLE (None when no compensation was needed)
    """
    vehicle_id: Optional[str]
    claimed: bool
    committed: bool
    compensated: Optional[bool] = None

    @property
    def leaked(self) -> bool:
        # BUSY with no trip: only the reconciliation sweep can recover it
        return self.claimed and not self.committed and self.compensated is False


@dataclass(frozen=True)
class MatchResult:
    request_id: str
    status: MatchStatus
    trip: Optional[Trip] = None
    claim: Optional[VehicleClaim] = None
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status in (MatchStatus.JOINED, MatchStatus.OPENED)


@dataclass(frozen=True)
class CancelResult:
    request_id: str
    status: CancelStatus
    trip_id: Optional[str] = None
    trip_closed: bool = False
    released_vehicle_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == CancelStatus.CANCELLED
