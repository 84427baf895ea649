from .computer import Computer
from .booking import Booking, ReleasedDate
from .release import ReleaseDetail, ReleaseDetailDate
from .notification import Notification

__all__ = [
    "Computer",
    "Booking",
    "ReleasedDate",
    "ReleaseDetail",
    "ReleaseDetailDate",
    "Notification",
]
