"""
Pooling subpackage for the Rides domain.

Public API:
- evaluate_join / can_join
- CandidateTrip, JoinAssessment
- PoolingPolicy
"""

from .feasibility import CandidateTrip, JoinAssessment, can_join, evaluate_join, sum_direct_km
from .policy import PoolingPolicy, default_policy, policy_from_env

__all__ = [
    "CandidateTrip",
    "JoinAssessment",
    "PoolingPolicy",
    "can_join",
    "default_policy",
    "evaluate_join",
    "policy_from_env",
    "sum_direct_km",
]
