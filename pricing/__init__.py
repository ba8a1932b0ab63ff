from .surge import (
    PricingPolicy,
    calculate_price,
    default_pricing_policy,
    pricing_policy_from_env,
    surge_multiplier,
    utilisation,
)

__all__ = [
    "PricingPolicy",
    "calculate_price",
    "default_pricing_policy",
    "pricing_policy_from_env",
    "surge_multiplier",
    "utilisation",
]
