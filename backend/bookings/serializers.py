from rest_framework import serializers

from fleet.policy import fleet_policy_from_env
from .models import Booking, Trip, Vehicle

class VehicleSerializer(serializers.ModelSerializer):
    capacity = serializers.IntegerField(min_value=1, required=False)

    class Meta:
        model = Vehicle
        fields = ['id', 'name', 'capacity', 'status', 'status_changed_at', 'created_at']
        # Status moves only through claims, trip closes and the reconciliation sweep
        read_only_fields = ['id', 'status', 'status_changed_at', 'created_at']

    def validate_capacity(self, value):
        """
        Never shrink a vehicle below the passengers already riding its open trip.
        """
        if self.instance is None:
            return value
        riding = (
            Booking.objects.filter(trip__vehicle=self.instance, trip__status=Trip.Status.SCHEDULED)
            .exclude(status=Booking.Status.CANCELLED)
            .count()
        )
        if value < riding:
            raise serializers.ValidationError(
                f"Vehicle has {riding} passengers on its open trip, capacity cannot drop below that"
            )
        return value

    def create(self, validated_data):
        validated_data.setdefault('capacity', fleet_policy_from_env().default_capacity)
        return super().create(validated_data)

class TripSerializer(serializers.ModelSerializer):
    bookings = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Trip
        fields = ['id', 'vehicle', 'path', 'status', 'bookings', 'created_at', 'updated_at']

class BookingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = '__all__'
        read_only_fields = ['user', 'trip', 'price', 'status']

class BookingRequestSerializer(serializers.Serializer):
    """
    Input for a new booking. Range checks happen in the engine so the
    API and the simulations reject exactly the same coordinates.
    """
    pickup_lat = serializers.FloatField()
    pickup_lng = serializers.FloatField()
    dropoff_lat = serializers.FloatField()
    dropoff_lng = serializers.FloatField()

    @property
    def pickup(self):
        return (self.validated_data['pickup_lat'], self.validated_data['pickup_lng'])

    @property
    def dropoff(self):
        return (self.validated_data['dropoff_lat'], self.validated_data['dropoff_lng'])
