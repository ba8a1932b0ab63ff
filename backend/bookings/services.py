from dispatch import PoolingDispatcher
from fleet.policy import fleet_policy_from_env
from pricing.surge import pricing_policy_from_env
from rides.pooling.policy import policy_from_env
from .store import DjangoRideStore


def get_dispatcher():
    """
    Dispatcher wired to the database, with policies read from the environment.
    Cheap to build: holds no state beyond the policies.
    """
    return PoolingDispatcher(
        DjangoRideStore(),
        pooling_policy=policy_from_env(),
        fleet_policy=fleet_policy_from_env(),
        pricing_policy=pricing_policy_from_env(),
    )
