from dataclasses import replace

from rides.models import PassengerRequest, RequestStatus


class RequestStateException(Exception):
    """Raised when an invalid passenger request transition is attempted."""
    pass


def confirm_request(request: PassengerRequest, trip_id: str) -> PassengerRequest:
    """
    Called inside the attach / open-trip transaction once the request has a seat.
    PENDING -> CONFIRMED, recording the trip it rides on.
    """
    if request.status != RequestStatus.PENDING:
        raise RequestStateException(f"Cannot confirm request {request.id} from {request.status.value}")

    return replace(request, status=RequestStatus.CONFIRMED, trip_id=trip_id)


def cancel_request(request: PassengerRequest) -> PassengerRequest:
    """
    PENDING or CONFIRMED -> CANCELLED. Terminal: cancelling twice is rejected.
    The trip reference is kept for history; it just stops counting toward seats.
    """
    if request.status == RequestStatus.CANCELLED:
        raise RequestStateException(f"Request {request.id} is already cancelled")

    return replace(request, status=RequestStatus.CANCELLED)
