"""
Keeps the denormalized release summary on Booking in step with the ledger.

The summary is the set of ``ReleasedDate`` rows plus the counters on
``Booking``. After every change:

    total_released_days == number of ReleasedDate rows
    has_active_releases == (total_released_days > 0)
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..exceptions import DuplicateReleaseError
from ..models import ReleasedDate, ReleaseDetail, ReleaseDetailDate

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = ['total_released_days', 'has_active_releases', 'releases_updated_at', 'updated_at']


def reconcile_summary(booking):
    """Recompute the counters from the summary rows and stamp the update time."""
    total = ReleasedDate.objects.filter(booking=booking).count()
    booking.total_released_days = total
    booking.has_active_releases = total > 0
    booking.releases_updated_at = timezone.now()
    booking.save(update_fields=SUMMARY_FIELDS)
    return booking


def append_released_dates(booking, days):
    """Add unbooked summary rows for newly released days."""
    try:
        with transaction.atomic():
            ReleasedDate.objects.bulk_create([ReleasedDate(booking=booking, date=day) for day in days])
    except IntegrityError:
        # Another release for the same day committed first.
        taken = set(
            ReleasedDate.objects.filter(booking=booking, date__in=days).values_list('date', flat=True)
        )
        raise DuplicateReleaseError(dates=[day for day in days if day in taken] or days)
    return reconcile_summary(booking)


def subtract_release(booking, release):
    """
    Remove a cancelled release's days from the summary.

    Only unbooked rows are removed. Returns the days that could not be removed
    because somebody has claimed them in the meantime.
    """
    days = release.dates
    ReleasedDate.objects.filter(booking=booking, date__in=days, is_booked=False).delete()
    still_booked = list(
        ReleasedDate.objects.filter(booking=booking, date__in=days, is_booked=True).values_list('date', flat=True)
    )
    reconcile_summary(booking)
    return still_booked


def rebuild_summary(booking):
    """
    Rebuild the summary from the non-cancelled ledger entries.

    Returns ``(added, removed)``: sorted days that were missing from, or stale
    in, the summary before the rebuild.
    """
    ledger_days = (
        ReleaseDetailDate.objects
        .filter(release__booking=booking)
        .exclude(release__status=ReleaseDetail.Status.CANCELLED)
    )
    expected = {row.date: row for row in ledger_days}
    current = {row.date: row for row in ReleasedDate.objects.filter(booking=booking)}

    removed = sorted(current.keys() - expected.keys())
    added = sorted(expected.keys() - current.keys())

    if removed:
        ReleasedDate.objects.filter(booking=booking, date__in=removed).delete()
    if added:
        ReleasedDate.objects.bulk_create([
            ReleasedDate(
                booking=booking,
                date=day,
                is_booked=expected[day].is_booked,
                temp_booking_id=expected[day].temp_booking_id,
            )
            for day in added
        ])
    for day in current.keys() & expected.keys():
        summary_row, ledger_row = current[day], expected[day]
        if (summary_row.is_booked, summary_row.temp_booking_id) != (ledger_row.is_booked, ledger_row.temp_booking_id):
            summary_row.is_booked = ledger_row.is_booked
            summary_row.temp_booking_id = ledger_row.temp_booking_id
            summary_row.save(update_fields=['is_booked', 'temp_booking'])

    reconcile_summary(booking)
    if added or removed:
        logger.warning(
            "Rebuilt release summary of booking %s: added=%s removed=%s",
            booking.pk, [d.isoformat() for d in added], [d.isoformat() for d in removed],
        )
    return added, removed
