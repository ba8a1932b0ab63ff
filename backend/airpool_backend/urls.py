from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from users.views import RegisterView, UserDetailView
from bookings.views import BookingViewSet, VehicleViewSet, TripViewSet, health

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'vehicles', VehicleViewSet)
router.register(r'trips', TripViewSet)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include(router.urls)),
    path('api/v1/auth/register/', RegisterView.as_view(), name='register'),
    path('api/v1/auth/me/', UserDetailView.as_view(), name='user-detail'),
    path('health/', health, name='health'),
]
