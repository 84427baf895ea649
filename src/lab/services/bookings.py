"""
Booking request workflow: pending requests are approved or rejected by lab
admins and may be cancelled by their owner.
"""
import logging

from django.db import transaction
from django.utils import timezone

from ..exceptions import NotFoundError, ForbiddenError, InvalidStateError, ConflictError
from ..models import Booking, ReleasedDate, ReleaseDetail, ReleaseDetailDate, Notification
from ..notifications import notify
from .reconciliation import reconcile_summary

logger = logging.getLogger(__name__)


def _lock_booking(booking_id):
    booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
    if booking is None:
        raise NotFoundError("Booking not found.")
    return booking


def overlapping_bookings(booking, statuses):
    """Other bookings of the same computer whose days and hours overlap."""
    return (
        Booking.objects
        .filter(
            computer_id=booking.computer_id,
            status__in=statuses,
            start_date__lte=booking.end_date,
            end_date__gte=booking.start_date,
            start_time__lt=booking.end_time,
            end_time__gt=booking.start_time,
        )
        .exclude(pk=booking.pk)
    )


def submit_booking(booking):
    """Announce a new pending request to the lab admins."""
    notify(
        Notification.Type.BOOKING_CREATED,
        f"New booking request for {booking.computer.name} from {booking.user.display_name}",
        metadata={'booking_id': booking.pk, 'computer_id': booking.computer_id},
    )
    return booking


def approve_booking(booking_id, admin):
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if booking.status != Booking.PENDING:
            raise InvalidStateError("Only pending bookings can be approved.")
        if overlapping_bookings(booking, [Booking.APPROVED]).exists():
            raise ConflictError("Requested dates overlap with an approved booking.")

        booking.status = Booking.APPROVED
        booking.save(update_fields=['status', 'updated_at'])

        # Competing requests for the same slot can no longer be granted
        losers = list(overlapping_bookings(booking, [Booking.PENDING]).select_related('user'))
        if losers:
            Booking.objects.filter(pk__in=[b.pk for b in losers]).update(status=Booking.REJECTED)

    logger.info("Booking %s approved by admin %s; %s overlapping request(s) rejected", booking.pk, admin.pk, len(losers))
    notify(
        Notification.Type.BOOKING_APPROVED,
        f"Your booking for {booking.computer.name} has been approved",
        user=booking.user,
        metadata={'booking_id': booking.pk},
    )
    for other in losers:
        notify(
            Notification.Type.BOOKING_REJECTED,
            f"Your booking for {booking.computer.name} was rejected: the slot has been given to another request",
            user=other.user,
            metadata={'booking_id': other.pk, 'approved_booking_id': booking.pk},
        )
    return booking


def reject_booking(booking_id, admin):
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if booking.status != Booking.PENDING:
            raise InvalidStateError("Only pending bookings can be rejected.")
        booking.status = Booking.REJECTED
        booking.save(update_fields=['status', 'updated_at'])

    logger.info("Booking %s rejected by admin %s", booking.pk, admin.pk)
    notify(
        Notification.Type.BOOKING_REJECTED,
        f"Your booking for {booking.computer.name} has been rejected",
        user=booking.user,
        metadata={'booking_id': booking.pk},
    )
    return booking


def _return_claimed_day(temp_booking):
    """Put the day a temporary booking claimed back into its original release."""
    original = _lock_booking(temp_booking.original_booking_id)
    ReleasedDate.objects.filter(
        booking=original, temp_booking=temp_booking, is_booked=True,
    ).update(is_booked=False, temp_booking=None)

    rows = ReleaseDetailDate.objects.filter(
        release__booking=original, temp_booking=temp_booking, is_booked=True,
    )
    release_ids = list(rows.values_list('release_id', flat=True))
    rows.update(is_booked=False, temp_booking=None, booked_by=None, booked_at=None)
    for release in ReleaseDetail.objects.select_for_update().filter(pk__in=release_ids):
        release.save(update_fields=['status', 'updated_at'])

    original.releases_updated_at = timezone.now()
    original.save(update_fields=['releases_updated_at', 'updated_at'])
    return original


def cancel_booking(booking_id, acting_user):
    """
    Cancel a pending or approved booking.

    Open releases are cancelled along with it and the summary is cleared. A
    booking some of whose released days were already claimed stays approved.
    Cancelling a temporary booking makes its day claimable again.
    """
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if booking.user_id != acting_user.pk:
            raise ForbiddenError("Only the booking owner can cancel it.")
        if booking.status not in (Booking.PENDING, Booking.APPROVED):
            raise InvalidStateError("Only pending or approved bookings can be cancelled.")

        claimed = list(
            ReleasedDate.objects.filter(booking=booking, is_booked=True).values_list('date', flat=True)
        )
        if claimed:
            raise ConflictError(
                "Cannot cancel a booking whose released days were booked by other users.",
                dates=claimed,
            )

        booking.status = Booking.CANCELLED
        booking.save(update_fields=['status', 'updated_at'])

        for release in booking.releases.select_for_update().filter(status=ReleaseDetail.Status.ACTIVE):
            release.transition_to(ReleaseDetail.Status.CANCELLED)
            release.save(update_fields=['status', 'updated_at'])
        if booking.released_dates.exists():
            booking.released_dates.all().delete()
            reconcile_summary(booking)

        original = None
        if booking.is_temporary_booking and booking.original_booking_id:
            original = _return_claimed_day(booking)

    logger.info("Booking %s cancelled by user %s", booking.pk, acting_user.pk)
    if original is not None:
        notify(
            Notification.Type.BOOKING_CANCELLED,
            f"Released day {booking.start_date} is available again: the temporary booking was cancelled",
            user=original.user,
            metadata={'booking_id': original.pk, 'temp_booking_id': booking.pk, 'date': booking.start_date.isoformat()},
        )
    notify(
        Notification.Type.BOOKING_CANCELLED,
        f"Booking for {booking.computer.name} ({booking.start_date}..{booking.end_date}) was cancelled",
        metadata={'booking_id': booking.pk, 'computer_id': booking.computer_id},
    )
    return booking
