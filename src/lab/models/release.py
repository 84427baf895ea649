from django.conf import settings
from django.db import models
from django.db.models import Count, Q
from django.utils.dateparse import parse_date

from ..exceptions import InvalidStateError


class ReleaseDetail(models.Model):
    """
    Ledger entry: one per release action a booking owner performs.

    ``released_dates`` keeps the requested days as ``YYYY-MM-DD`` strings;
    ``booking_details`` holds one row per day tracking whether someone claimed it.

    Status transitions::

        active ◄──► partially_booked ◄──► fully_booked   (and active ◄──► fully_booked)
          └──► cancelled   (only while nothing is booked)

    Moving back towards active happens when a temporary booking on one of
    the days is cancelled.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        PARTIALLY_BOOKED = 'partially_booked', 'Partially booked'
        FULLY_BOOKED = 'fully_booked', 'Fully booked'
        CANCELLED = 'cancelled', 'Cancelled'

    class ReleaseType(models.TextChoices):
        SINGLE_DAY = 'single_day', 'Single day'
        MULTIPLE_DAYS = 'multiple_days', 'Multiple days'
        RANGE = 'range', 'Range'
        ADMIN_CREATED = 'admin_created', 'Admin created'

    TRANSITIONS = {
        'active': {'partially_booked', 'fully_booked', 'cancelled'},
        'partially_booked': {'active', 'fully_booked'},
        'fully_booked': {'active', 'partially_booked'},
        'cancelled': set(),
    }
    # Releases whose unbooked days can still be claimed
    OPEN_STATUSES = (Status.ACTIVE, Status.PARTIALLY_BOOKED)

    booking = models.ForeignKey('Booking', on_delete=models.CASCADE, related_name='releases')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='releases')
    release_number = models.PositiveIntegerField()
    released_dates = models.JSONField(default=list)
    reason = models.TextField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE, db_index=True)

    # Release context
    user_message = models.CharField(max_length=255, blank=True, default='')
    release_type = models.CharField(max_length=20, choices=ReleaseType.choices, default=ReleaseType.SINGLE_DAY)
    is_emergency = models.BooleanField(default=False)
    created_by_admin = models.BooleanField(default=False)
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='+',
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'release_number'], name='release_number_unique_per_booking'),
        ]
        indexes = [
            models.Index(fields=['user', 'status', 'created_at'], name='release_user_status_idx'),
            models.Index(fields=['booking', 'status'], name='release_booking_status_idx'),
        ]

    def __str__(self):
        return f"Release #{self.release_number} of booking {self.booking_id} [{self.status}]"

    @property
    def dates(self):
        return [parse_date(d) for d in self.released_dates]

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    def transition_to(self, new_status):
        new_status = str(new_status)
        if new_status == self.status:
            return
        if new_status not in self.TRANSITIONS.get(str(self.status), set()):
            raise InvalidStateError(
                f"Temporary release cannot move from {self.status} to {new_status}."
            )
        self.status = new_status

    def derived_status(self):
        # A release whose every day is claimed gets the explicit fully_booked
        # state instead of staying partially_booked.
        counts = self.booking_details.aggregate(
            total=Count('id'),
            booked=Count('id', filter=Q(is_booked=True)),
        )
        if not counts['booked']:
            return self.Status.ACTIVE
        if counts['booked'] < counts['total']:
            return self.Status.PARTIALLY_BOOKED
        return self.Status.FULLY_BOOKED

    def save(self, *args, **kwargs):
        self.reason = (self.reason or '').strip()
        # Cancelled is terminal; otherwise status follows the booked-day count.
        if self.pk and self.status != self.Status.CANCELLED:
            self.transition_to(self.derived_status())
        super().save(*args, **kwargs)


class ReleaseDetailDate(models.Model):
    """Per-day claim state of a release."""
    release = models.ForeignKey(ReleaseDetail, on_delete=models.CASCADE, related_name='booking_details')
    date = models.DateField()
    is_booked = models.BooleanField(default=False)
    temp_booking = models.ForeignKey(
        'Booking',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='+',
    )
    booked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='+',
    )
    booked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['date', 'id']
        constraints = [
            models.UniqueConstraint(fields=['release', 'date'], name='release_day_unique'),
        ]
        indexes = [
            models.Index(fields=['date', 'is_booked'], name='release_day_lookup_idx'),
        ]

    def __str__(self):
        return f"{self.date} of release {self.release_id}{' (booked)' if self.is_booked else ''}"
