from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views_modules import BookingViewSet, ReleaseViewSet, ComputerViewSet, NotificationViewSet

app_name = "lab"

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"releases", ReleaseViewSet, basename="release")
router.register(r"computers", ComputerViewSet, basename="computer")
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("", include(router.urls)),
]
