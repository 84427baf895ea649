from django.conf import settings
from django.db import models


class Booking(models.Model):
    """Reservation of a lab computer over an inclusive date range."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (APPROVED, 'Approved'),
        (REJECTED, 'Rejected'),
        (CANCELLED, 'Cancelled'),
        (COMPLETED, 'Completed'),
    ]

    class DatasetType(models.TextChoices):
        IMAGE = 'Image', 'Image'
        VIDEO = 'Video', 'Video'
        TEXT = 'Text', 'Text'
        TABULAR = 'Tabular', 'Tabular'
        AUDIO = 'Audio', 'Audio'
        OTHER = 'Other', 'Other'

    class SizeUnit(models.TextChoices):
        MB = 'MB', 'MB'
        GB = 'GB', 'GB'
        TB = 'TB', 'TB'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    computer = models.ForeignKey('Computer', on_delete=models.CASCADE, related_name='bookings')
    start_date = models.DateField()
    end_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    reason = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING, db_index=True)

    # Project metadata collected with the request
    requires_gpu = models.BooleanField(default=False)
    problem_statement = models.TextField(blank=True, default='')
    dataset_type = models.CharField(max_length=10, choices=DatasetType.choices, default=DatasetType.OTHER)
    dataset_size_value = models.PositiveIntegerField(default=0)
    dataset_size_unit = models.CharField(max_length=2, choices=SizeUnit.choices, default=SizeUnit.MB)
    dataset_link = models.CharField(max_length=500, blank=True, default='')
    bottleneck_explanation = models.TextField(blank=True, default='')

    # A claimed released day becomes its own single-day booking
    is_temporary_booking = models.BooleanField(default=False)
    original_booking = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='temporary_bookings',
    )

    # Denormalized temporary-release summary; rows live in ReleasedDate
    has_active_releases = models.BooleanField(default=False)
    total_released_days = models.PositiveIntegerField(default=0)
    releases_updated_at = models.DateTimeField(null=True, blank=True)
    release_counter = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['computer', 'status', 'start_date', 'end_date'],
                name='booking_overlap_idx',
            ),
            models.Index(
                fields=['computer', 'status', 'has_active_releases'],
                name='booking_release_lookup_idx',
            ),
            models.Index(fields=['user', 'status'], name='booking_user_status_idx'),
        ]

    def __str__(self):
        return f"{self.user} → {self.computer} {self.start_date}..{self.end_date} [{self.status}]"

    def covers(self, day):
        return self.start_date <= day <= self.end_date

    @property
    def temporary_release(self):
        """Summary of released days, or None if nothing was ever released."""
        if self.releases_updated_at is None:
            return None
        return {
            'has_active_releases': self.has_active_releases,
            'total_released_days': self.total_released_days,
            'released_dates': [
                {
                    'date': rd.date.isoformat(),
                    'is_booked': rd.is_booked,
                    'temp_booking_id': rd.temp_booking_id,
                }
                for rd in self.released_dates.all()
            ],
            'last_updated': self.releases_updated_at,
        }


class ReleasedDate(models.Model):
    """One released day in a booking's summary."""
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='released_dates')
    date = models.DateField()
    is_booked = models.BooleanField(default=False)
    temp_booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='+',
    )

    class Meta:
        ordering = ['date', 'id']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'date'], name='released_date_unique_per_booking'),
        ]
        indexes = [
            models.Index(fields=['booking', 'is_booked', 'date'], name='released_date_open_idx'),
        ]

    def __str__(self):
        return f"{self.date} of booking {self.booking_id}{' (booked)' if self.is_booked else ''}"
