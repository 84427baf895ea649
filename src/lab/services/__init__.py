from .validation import parse_release_date, validate_release_request
from .reconciliation import reconcile_summary, append_released_dates, subtract_release, rebuild_summary
from .bookings import overlapping_bookings, submit_booking, approve_booking, reject_booking, cancel_booking
from .releases import (
    create_release,
    cancel_release,
    list_available_slots,
    claim_released_date,
)

__all__ = [
    "overlapping_bookings",
    "submit_booking",
    "approve_booking",
    "reject_booking",
    "cancel_booking",
    "parse_release_date",
    "validate_release_request",
    "reconcile_summary",
    "append_released_dates",
    "subtract_release",
    "rebuild_summary",
    "create_release",
    "cancel_release",
    "list_available_slots",
    "claim_released_date",
]
