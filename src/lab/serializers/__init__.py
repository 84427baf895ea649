from .common import PublicUserTinySerializer, ComputerTinySerializer
from .computer import ComputerSerializer
from .booking import (
    BookingSerializer,
    BookingBriefSerializer,
    BookingReleaseSummarySerializer,
    TemporaryReleaseSummarySerializer,
)
from .release import (
    ReleaseCreateSerializer,
    ReleaseDetailSerializer,
    AdminReleaseSerializer,
    AvailableSlotSerializer,
    ClaimSerializer,
)
from .notification import NotificationSerializer

__all__ = [
    "PublicUserTinySerializer",
    "ComputerTinySerializer",
    "ComputerSerializer",
    "BookingSerializer",
    "BookingBriefSerializer",
    "BookingReleaseSummarySerializer",
    "TemporaryReleaseSummarySerializer",
    "ReleaseCreateSerializer",
    "ReleaseDetailSerializer",
    "AdminReleaseSerializer",
    "AvailableSlotSerializer",
    "ClaimSerializer",
    "NotificationSerializer",
]
