from .order_state import RequestStateException, cancel_request, confirm_request
from .trip_state import TripStateException, close_trip, extend_path

__all__ = [
    "RequestStateException",
    "TripStateException",
    "cancel_request",
    "close_trip",
    "confirm_request",
    "extend_path",
]
