from .booking import BookingViewSet
from .release import ReleaseViewSet
from .computer import ComputerViewSet
from .notification import NotificationViewSet
from .filters import BookingFilter, ReleaseFilter

__all__ = [
    "BookingViewSet",
    "ReleaseViewSet",
    "ComputerViewSet",
    "NotificationViewSet",
    "BookingFilter",
    "ReleaseFilter",
]
