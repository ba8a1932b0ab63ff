"""
Purpose: Central configuration for pooling behaviour (single source of truth).
What it does:

Stores the tunable thresholds the validator and coordinator read:

MAX_DEVIATION = 0.5

MAX_MATCH_ATTEMPTS = 3

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Example in .env:
# AIRPOOL_MAX_DEVIATION=0.4
load_dotenv()


@dataclass(frozen=True)
class PoolingPolicy:
    """
    Central configuration for joining passengers into open trips.

    Notes:
    - 'max_deviation' is the trip-level detour cap:
        path_length(shared path) <= sum(direct distances) * (1 + max_deviation)
      0.5 means the shared path may be at most 50% longer than the sum of
      each passenger's direct trip. It is an aggregate bound, one passenger
      can absorb more than their share of the detour.
    - 'max_match_attempts' bounds how often a match is re-scanned when the
      fresh read inside the attach transaction no longer admits the request.
    """

    max_deviation: float = 0.5

    max_match_attempts: int = 3

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup if you want.
        """
        if self.max_deviation < 0.0:
            raise ValueError("max_deviation must be >= 0.0")

        if self.max_match_attempts < 1:
            raise ValueError("max_match_attempts must be >= 1")


def default_policy() -> PoolingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = PoolingPolicy()
    p.validate()
    return p


def policy_from_env() -> PoolingPolicy:
    """
    Build the policy from AIRPOOL_* environment variables, falling back to defaults.
    """
    defaults = PoolingPolicy()
    p = PoolingPolicy(
        max_deviation=float(os.getenv("AIRPOOL_MAX_DEVIATION", defaults.max_deviation)),
        max_match_attempts=int(os.getenv("AIRPOOL_MAX_MATCH_ATTEMPTS", defaults.max_match_attempts)),
    )
    p.validate()
    return p
