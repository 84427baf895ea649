"""
Temporary releases: an owner gives specific days of an approved booking back
to the pool, and other users claim those days as single-day bookings.

Every operation runs in one database transaction. Claims rely on conditional
updates (``UPDATE ... WHERE is_booked = false``) so that two concurrent claims
of the same day cannot both succeed.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import (
    ValidationError, NotFoundError, ForbiddenError, InvalidStateError, ConflictError,
)
from ..models import Booking, ReleasedDate, ReleaseDetail, ReleaseDetailDate, Notification
from ..notifications import notify
from .reconciliation import append_released_dates, subtract_release
from .validation import parse_release_date, validate_release_request

logger = logging.getLogger(__name__)

# Project metadata for claimed days; the claimant works under the original request.
TEMPORARY_BOOKING_DEFAULTS = {
    'requires_gpu': False,
    'problem_statement': 'Temporary booking - system requirements same as original booking',
    'dataset_type': Booking.DatasetType.OTHER,
    'dataset_size_value': 0,
    'dataset_size_unit': Booking.SizeUnit.MB,
    'dataset_link': 'N/A - Temporary booking',
    'bottleneck_explanation': 'N/A - Temporary booking',
}


def _is_admin(user):
    return bool(getattr(user, 'is_admin', False) or getattr(user, 'is_staff', False))


def _get_booking(booking_id, lock=False):
    qs = Booking.objects.select_for_update() if lock else Booking.objects.all()
    try:
        return qs.get(pk=int(booking_id))
    except (Booking.DoesNotExist, TypeError, ValueError):
        raise NotFoundError("Booking not found.")


def _get_release(release_id, lock=False):
    qs = ReleaseDetail.objects.select_for_update() if lock else ReleaseDetail.objects.all()
    try:
        return qs.get(pk=int(release_id))
    except (ReleaseDetail.DoesNotExist, TypeError, ValueError):
        raise NotFoundError("Temporary release not found.")


def _next_release_number(booking):
    Booking.objects.filter(pk=booking.pk).update(release_counter=F('release_counter') + 1)
    booking.refresh_from_db(fields=['release_counter'])
    return booking.release_counter


def create_release(booking_id, user, requested_dates, reason, context=None):
    """
    Release days of an approved booking for others to claim.

    Returns ``(release, release_number)``. Lab admins may release days of any
    booking; the release still belongs to the booking owner and is flagged
    as admin-created.
    """
    context = context or {}
    with transaction.atomic():
        booking = _get_booking(booking_id, lock=True)

        acting_as_admin = booking.user_id != user.pk
        if acting_as_admin and not _is_admin(user):
            raise ForbiddenError("You can only create temporary releases for your own bookings.")
        if booking.status != Booking.APPROVED:
            raise InvalidStateError("Can only create temporary releases for approved bookings.")

        days = validate_release_request(booking, requested_dates, reason)
        release_number = _next_release_number(booking)

        if acting_as_admin:
            release_type = ReleaseDetail.ReleaseType.ADMIN_CREATED
        else:
            release_type = context.get('release_type') or (
                ReleaseDetail.ReleaseType.SINGLE_DAY if len(days) == 1
                else ReleaseDetail.ReleaseType.MULTIPLE_DAYS
            )

        release = ReleaseDetail.objects.create(
            booking=booking,
            user_id=booking.user_id,
            release_number=release_number,
            released_dates=[day.isoformat() for day in days],
            reason=reason.strip(),
            user_message=context.get('user_message') or f"Release #{release_number} for {len(days)} day(s)",
            release_type=release_type,
            is_emergency=bool(context.get('is_emergency', False)),
            created_by_admin=acting_as_admin,
            admin=user if acting_as_admin else None,
        )
        ReleaseDetailDate.objects.bulk_create([ReleaseDetailDate(release=release, date=day) for day in days])
        append_released_dates(booking, days)

    logger.info(
        "Release #%s created on booking %s for %s day(s) by user %s",
        release_number, booking.pk, len(days), user.pk,
    )
    computer = booking.computer
    notify(
        Notification.Type.RELEASE_CREATED,
        f"Temporary release #{release_number} created for {computer.name} on {len(days)} day(s)",
        metadata={
            'booking_id': booking.pk,
            'computer_id': computer.pk,
            'release_number': release_number,
            'release_dates': release.released_dates,
        },
    )
    return release, release_number


def cancel_release(release_id, acting_user):
    """Cancel a release that nobody has claimed any day of."""
    with transaction.atomic():
        release = _get_release(release_id, lock=True)

        if release.user_id != acting_user.pk and not _is_admin(acting_user):
            raise ForbiddenError("You can only cancel your own temporary releases.")
        if release.status == ReleaseDetail.Status.CANCELLED:
            raise InvalidStateError("Temporary release is already cancelled.")

        booked = list(release.booking_details.filter(is_booked=True).values_list('date', flat=True))
        if booked:
            raise ConflictError(
                "Cannot cancel temporary release as there are existing bookings during this period.",
                dates=booked,
            )

        release.transition_to(ReleaseDetail.Status.CANCELLED)
        release.save(update_fields=['status', 'updated_at'])

        booking = _get_booking(release.booking_id, lock=True)
        claimed_meanwhile = subtract_release(booking, release)
        if claimed_meanwhile:
            raise ConflictError(
                "Cannot cancel temporary release as there are existing bookings during this period.",
                dates=claimed_meanwhile,
            )

    logger.info("Release #%s of booking %s cancelled by user %s", release.release_number, booking.pk, acting_user.pk)
    computer = booking.computer
    notify(
        Notification.Type.RELEASE_CANCELLED,
        f"Temporary release #{release.release_number} for {computer.name} has been cancelled",
        metadata={
            'booking_id': booking.pk,
            'computer_id': computer.pk,
            'computer_name': computer.name,
            'release_number': release.release_number,
        },
    )
    return release


def list_available_slots(computer_id, start_date, end_date):
    """
    Unclaimed released days of a computer within ``[start_date, end_date]``.

    Bounds are checked eagerly; the slots themselves are produced lazily from a
    fresh read, ordered by day and then by booking creation. The result is a
    snapshot only: claims re-check availability.
    """
    start = parse_release_date(start_date)
    end = parse_release_date(end_date)
    if start is None or end is None:
        raise ValidationError("start_date and end_date query parameters are required (YYYY-MM-DD).")
    if start > end:
        raise ValidationError("start_date must not be after end_date.")
    return _iter_available_slots(computer_id, start, end)


def _iter_available_slots(computer_id, start, end):
    rows = (
        ReleasedDate.objects
        .filter(
            booking__computer_id=computer_id,
            booking__status=Booking.APPROVED,
            booking__has_active_releases=True,
            is_booked=False,
            date__gte=start,
            date__lte=end,
        )
        .select_related('booking__computer')
        .order_by('date', 'booking__created_at', 'booking_id')
    )
    for row in rows.iterator():
        booking = row.booking
        yield {
            'date': row.date.isoformat(),
            'start_time': booking.start_time,
            'end_time': booking.end_time,
            'original_booking_id': booking.pk,
            'computer_name': booking.computer.name,
            'location': booking.computer.location,
        }


def claim_released_date(original_booking_id, date, claiming_user, reason):
    """
    Turn an unclaimed released day into an auto-approved single-day booking.

    Returns the new Booking. Raises ConflictError when the day is not (or no
    longer) available.
    """
    day = parse_release_date(date)
    if day is None:
        raise ValidationError("A valid date (YYYY-MM-DD) is required.", dates=[date] if date else None)
    if not (reason or '').strip():
        raise ValidationError("A reason is required.")

    with transaction.atomic():
        original = _get_booking(original_booking_id)
        if original.status != Booking.APPROVED or not original.has_active_releases:
            raise InvalidStateError("No active temporary release found for this booking.")
        if original.user_id == claiming_user.pk:
            raise ForbiddenError("You cannot claim a day released from your own booking.")

        claimed = (
            ReleasedDate.objects
            .filter(booking=original, date=day, is_booked=False)
            .update(is_booked=True)
        )
        if not claimed:
            raise ConflictError("Date is not available for temporary booking.", dates=[day])

        temp_booking = Booking.objects.create(
            user=claiming_user,
            computer_id=original.computer_id,
            start_date=day,
            end_date=day,
            start_time=original.start_time,
            end_time=original.end_time,
            reason=reason.strip(),
            status=Booking.APPROVED,
            is_temporary_booking=True,
            original_booking=original,
            **TEMPORARY_BOOKING_DEFAULTS,
        )
        ReleasedDate.objects.filter(booking=original, date=day).update(temp_booking=temp_booking)
        original.releases_updated_at = timezone.now()
        original.save(update_fields=['releases_updated_at', 'updated_at'])

        ledger_updated = (
            ReleaseDetailDate.objects
            .filter(
                release__booking=original,
                release__status__in=ReleaseDetail.OPEN_STATUSES,
                date=day,
                is_booked=False,
            )
            .update(
                is_booked=True,
                temp_booking=temp_booking,
                booked_by=claiming_user,
                booked_at=timezone.now(),
            )
        )
        if not ledger_updated:
            raise ConflictError("Date is not available for temporary booking.", dates=[day])

        release = (
            ReleaseDetail.objects
            .select_for_update()
            .get(booking=original, booking_details__date=day, booking_details__temp_booking=temp_booking)
        )
        release.save(update_fields=['status', 'updated_at'])

    logger.info(
        "Day %s of booking %s claimed by user %s as booking %s",
        day.isoformat(), original.pk, claiming_user.pk, temp_booking.pk,
    )
    notify(
        Notification.Type.RELEASE_CLAIMED,
        f"Your released day {day.isoformat()} has been booked by another user",
        user=original.user,
        metadata={
            'booking_id': original.pk,
            'temp_booking_id': temp_booking.pk,
            'release_number': release.release_number,
            'date': day.isoformat(),
        },
    )
    return temp_booking
