"""
Rides domain package.

Public API:
- Domain models: PassengerRequest, Trip, User, RequestStatus, TripStatus
"""
from .models import PassengerRequest, RequestStatus, Trip, TripStatus, User

__all__ = [
    "PassengerRequest",
    "RequestStatus",
    "Trip",
    "TripStatus",
    "User",
]
