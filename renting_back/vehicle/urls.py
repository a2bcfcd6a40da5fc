# vehicle/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import VehicleViewSet, ReminderViewSet

router = DefaultRouter(trailing_slash=False)
router.register(r'vehicles', VehicleViewSet, basename='vehicle')
# legacy spelling still used by existing clients
router.register(r'vehical', VehicleViewSet, basename='vehical')
router.register(r'reminders', ReminderViewSet, basename='reminder')

urlpatterns = [
    path('', include(router.urls)),
]
