"""
Purpose: Surge pricing as a pure function of fleet utilisation.
What it does:

price = (base_fare + distance_km * per_km_rate) * multiplier

where multiplier steps up with utilisation = busy / total vehicles.
The caller reads the counts; nothing here touches matching state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class PricingPolicy:
    """
    Fare constants and surge tiers.

    surge_tiers is a list of (utilisation threshold, multiplier); the first
    tier whose threshold utilisation strictly exceeds wins, so keep it sorted
    from the highest threshold down.
    """

    base_fare: float = 50.0
    per_km_rate: float = 12.0

    surge_tiers: List[Tuple[float, float]] = field(default_factory=lambda: [(0.8, 1.5), (0.5, 1.2)])

    def validate(self) -> None:
        if self.base_fare < 0 or self.per_km_rate < 0:
            raise ValueError("base_fare and per_km_rate must be >= 0")

        thresholds = [threshold for threshold, _ in self.surge_tiers]
        if thresholds != sorted(thresholds, reverse=True):
            raise ValueError("surge_tiers must be sorted by threshold, highest first")

        for _, multiplier in self.surge_tiers:
            if multiplier < 1.0:
                raise ValueError("surge multipliers must be >= 1.0")


def default_pricing_policy() -> PricingPolicy:
    p = PricingPolicy()
    p.validate()
    return p


def pricing_policy_from_env() -> PricingPolicy:
    defaults = PricingPolicy()
    p = PricingPolicy(
        base_fare=float(os.getenv("AIRPOOL_BASE_FARE", defaults.base_fare)),
        per_km_rate=float(os.getenv("AIRPOOL_PER_KM_RATE", defaults.per_km_rate)),
    )
    p.validate()
    return p


def utilisation(busy_vehicles: int, total_vehicles: int) -> float:
    if busy_vehicles < 0 or total_vehicles < 0:
        raise ValueError("vehicle counts must be >= 0")
    if total_vehicles == 0:
        return 0.0
    return busy_vehicles / total_vehicles


def surge_multiplier(busy_vehicles: int, total_vehicles: int, policy: PricingPolicy) -> float:
    current = utilisation(busy_vehicles, total_vehicles)
    for threshold, multiplier in policy.surge_tiers:
        if current > threshold:
            return multiplier
    return 1.0


def calculate_price(
    distance_km: float,
    busy_vehicles: int,
    total_vehicles: int,
    policy: PricingPolicy | None = None,
) -> float:
    """
    Quote a fare for a trip of `distance_km` given the current fleet load.
    """
    policy = policy or default_pricing_policy()
    if distance_km < 0:
        raise ValueError("distance_km must be >= 0")

    multiplier = surge_multiplier(busy_vehicles, total_vehicles, policy)
    return round((policy.base_fare + distance_km * policy.per_km_rate) * multiplier, 2)
