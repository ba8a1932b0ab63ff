import logging

from rest_framework import mixins, viewsets, permissions, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from dispatch import CancelStatus, MatchStatus, UnknownUserError
from routing.geo import InvalidCoordinatesError
from .models import Booking, Trip, Vehicle
from .serializers import BookingRequestSerializer, BookingSerializer, TripSerializer, VehicleSerializer
from .services import get_dispatcher

logger = logging.getLogger(__name__)

class IsOperatorOrReadOnly(permissions.BasePermission):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return getattr(request.user, 'is_operator', False)

class BookingViewSet(mixins.CreateModelMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """
    Passenger bookings.
    - Create: price, store and match in one call
    - Cancel: frees the seat; the last passenger out releases the vehicle
    """
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        """
        Operators see every booking, passengers only their own.
        """
        user = self.request.user
        if user.is_operator:
            return Booking.objects.all().order_by('-created_at')
        return Booking.objects.filter(user=user).order_by('-created_at')

    def create(self, request, *args, **kwargs):
        params = BookingRequestSerializer(data=request.data)
        params.is_valid(raise_exception=True)

        try:
            result = get_dispatcher().submit_request(str(request.user.pk), params.pickup, params.dropoff)
        except (InvalidCoordinatesError, UnknownUserError) as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        booking = Booking.objects.get(pk=result.request_id)
        payload = {
            "booking": BookingSerializer(booking).data,
            "match_status": result.status.value,
            "trip": result.trip.id if result.trip else None,
        }

        if result.status == MatchStatus.FAILED:
            # Booking is stored and still PENDING; the client may retry later
            logger.error(f"Booking {booking.pk} failed to match: {result.error}")
            payload["error"] = result.error
            return Response(payload, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel this booking.
        """
        booking = self.get_object()
        result = get_dispatcher().cancel_request(booking.pk)

        if result.status == CancelStatus.NOT_FOUND:
            return Response({"error": "Booking not found"}, status=status.HTTP_404_NOT_FOUND)
        if result.status == CancelStatus.ALREADY_CANCELLED:
            return Response({"error": "Already cancelled"}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            "status": result.status.value,
            "trip": result.trip_id,
            "trip_closed": result.trip_closed,
            "released_vehicle": result.released_vehicle_id,
        })

class VehicleViewSet(mixins.CreateModelMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    """
    Fleet registry.
    - Authenticated: List/Retrieve
    - Operators: Create/Update (never status)
    """
    queryset = Vehicle.objects.all().order_by('created_at')
    serializer_class = VehicleSerializer
    permission_classes = [permissions.IsAuthenticated, IsOperatorOrReadOnly]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

class TripViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Trip.objects.all().order_by('-created_at')
    serializer_class = TripSerializer
    permission_classes = [permissions.IsAuthenticated]

@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health(request):
    return Response({
        "status": "ok",
        "vehicles": Vehicle.objects.count(),
        "busy_vehicles": Vehicle.objects.filter(status=Vehicle.Status.BUSY).count(),
        "open_trips": Trip.objects.filter(status=Trip.Status.SCHEDULED).count(),
    })
