#Storage package: the store contract plus the in-memory reference store.

from .base import EntityNotFound, RideStore, StoreError
from .memory import InMemoryRideStore

__all__ = [
    "EntityNotFound",
    "InMemoryRideStore",
    "RideStore",
    "StoreError",
]
