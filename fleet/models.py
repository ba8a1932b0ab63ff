"""
Purpose: Core data models for the fleet domain.
What it does:
Defines the structure of a Vehicle and its status without relying on Django ORM constraints.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class VehicleStatus(str, Enum):
    """
    AVAILABLE -> BUSY only through the conditional claim.
    BUSY -> AVAILABLE only when the vehicle's trip closes (or a sweep frees an orphan).
    """
    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"


@dataclass(frozen=True)
class Vehicle:
    """
    A purely stateless representation of a Vehicle at a specific point in time.
    """
    id: str
    status: VehicleStatus

    # max simultaneous passengers
    capacity: int = 4
    name: Optional[str] = None
    status_changed_at: Optional[datetime] = None

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE

    def with_status(self, status: VehicleStatus, at: Optional[datetime] = None) -> Vehicle:
        # Vehicle is frozen, so transitions hand back a new instance
        return replace(self, status=status, status_changed_at=at or datetime.now(timezone.utc))

    @classmethod
    def new(
        cls,
        vehicle_id: Optional[str] = None,
        capacity: int = 4,
        status: str | VehicleStatus = VehicleStatus.AVAILABLE,
        name: Optional[str] = None,
    ) -> Vehicle:
        if isinstance(status, str):
            status = VehicleStatus(status.upper())

        return cls(
            id=vehicle_id or str(uuid.uuid4()),
            status=status,
            capacity=capacity,
            name=name,
            status_changed_at=datetime.now(timezone.utc),
        )
