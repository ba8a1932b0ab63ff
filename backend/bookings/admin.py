from django.contrib import admin
from .models import Booking, Trip, Vehicle

@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'capacity', 'status', 'status_changed_at')
    list_filter = ('status',)
    # Changing status by hand would bypass the claim protocol
    readonly_fields = ('status', 'status_changed_at')

@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ('id', 'vehicle', 'status', 'created_at')
    list_filter = ('status',)
    readonly_fields = ('path',)

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'status', 'price', 'trip', 'created_at')
    list_filter = ('status',)
