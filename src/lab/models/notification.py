from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Notification(models.Model):
    """Structured event for users and lab admins; written best-effort."""

    class Type(models.TextChoices):
        BOOKING_CREATED = "booking_created", "Booking created"
        BOOKING_APPROVED = "booking_approved", "Booking approved"
        BOOKING_REJECTED = "booking_rejected", "Booking rejected"
        BOOKING_CANCELLED = "booking_cancelled", "Booking cancelled"
        RELEASE_CREATED = "temp_release_created", "Temporary release created"
        RELEASE_CANCELLED = "temp_release_cancelled", "Temporary release cancelled"
        RELEASE_CLAIMED = "temp_release_claimed", "Released date claimed"

    type = models.CharField(max_length=32, choices=Type.choices)
    message = models.TextField()
    # Null user means the event is addressed to lab admins.
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True, blank=True,
        related_name="notifications",
    )
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    is_read = models.BooleanField(default=False)
    # Read state of admin-addressed notifications, tracked per admin.
    read_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="read_notifications",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read", "created_at"], name="notification_inbox_idx"),
        ]

    def __str__(self):
        return f"{self.type} -> {self.user_id or 'admins'}"

    def is_read_by(self, user):
        if self.user_id is None:
            return self.read_by.filter(pk=user.pk).exists()
        return self.is_read

    def mark_read_by(self, user):
        if self.user_id is None:
            self.read_by.add(user)
        elif not self.is_read:
            self.is_read = True
            self.save(update_fields=["is_read"])
