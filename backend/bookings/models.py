import uuid

from django.db import models
from django.conf import settings
from django.utils import timezone


def new_id():
    return str(uuid.uuid4())


class Vehicle(models.Model):
    """
    A pooled airport shuttle.
    Status only ever changes through the conditional update in DjangoRideStore,
    never through a plain save from the API.
    """
    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        BUSY = "BUSY", "Busy"

    # String ids so vehicles keep the same id inside and outside the engine
    id = models.CharField(primary_key=True, max_length=64, default=new_id, editable=False)
    name = models.CharField(max_length=255, blank=True)
    capacity = models.PositiveSmallIntegerField(default=4)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE, db_index=True)
    # Read by the reconciliation sweep to leave in-flight claims alone
    status_changed_at = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name or self.id} ({self.status})"


class Trip(models.Model):
    """
    One vehicle's pooled run.
    Path is the append-only stop list: [[lat, lng], ...] in attach order.
    """
    class Status(models.TextChoices):
        SCHEDULED = "SCHEDULED", "Scheduled"
        COMPLETED = "COMPLETED", "Completed"

    id = models.CharField(primary_key=True, max_length=64, default=new_id, editable=False)
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='trips')
    path = models.JSONField(default=list)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            # Backstop for the claim protocol: a vehicle serves one open trip at a time
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=models.Q(status="SCHEDULED"),
                name='one_scheduled_trip_per_vehicle',
            ),
        ]

    def __str__(self):
        return f"Trip {self.id} - {self.status}"


class Booking(models.Model):
    """
    A passenger request: pickup/dropoff, quoted price and the trip it rides on.
    Cancelled bookings keep their trip for history.
    """
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        CONFIRMED = "CONFIRMED", "Confirmed"
        CANCELLED = "CANCELLED", "Cancelled"

    id = models.CharField(primary_key=True, max_length=64, default=new_id, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')
    trip = models.ForeignKey(Trip, on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')

    pickup_lat = models.FloatField()
    pickup_lng = models.FloatField()
    dropoff_lat = models.FloatField()
    dropoff_lng = models.FloatField()

    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Booking {self.id} - {self.status}"
