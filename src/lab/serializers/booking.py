from django.utils import timezone
from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from rest_framework import serializers

from src.lab.models import Booking
from src.lab.serializers.common import PublicUserTinySerializer, ComputerTinySerializer

DATE_ERRORS = {
    "invalid": "Invalid date or format. Expected YYYY-MM-DD and a real calendar date."
}


class ReleasedDateSummarySerializer(serializers.Serializer):
    date = serializers.DateField()
    is_booked = serializers.BooleanField()
    temp_booking_id = serializers.IntegerField(allow_null=True)


class TemporaryReleaseSummarySerializer(serializers.Serializer):
    """Shape of ``Booking.temporary_release``."""
    has_active_releases = serializers.BooleanField()
    total_released_days = serializers.IntegerField()
    released_dates = ReleasedDateSummarySerializer(many=True)
    last_updated = serializers.DateTimeField()


class BookingBriefSerializer(serializers.ModelSerializer):
    """Original booking as embedded in release listings."""
    computer = ComputerTinySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = ("id", "user_id", "computer", "start_date", "end_date", "start_time", "end_time", "reason", "status")
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    # Writable input: `computer`, dates, times, reason and project metadata
    start_date = serializers.DateField(error_messages=DATE_ERRORS)
    end_date = serializers.DateField(error_messages=DATE_ERRORS)

    computer_id = serializers.IntegerField(read_only=True)
    computer_name = serializers.CharField(source="computer.name", read_only=True)
    original_booking_id = serializers.IntegerField(read_only=True)
    user = serializers.SerializerMethodField(read_only=True)
    temporary_release = serializers.SerializerMethodField(read_only=True)

    # Action flags based on the current user and status
    can_cancel = serializers.SerializerMethodField(read_only=True)
    can_release = serializers.SerializerMethodField(read_only=True)
    can_approve = serializers.SerializerMethodField(read_only=True)
    can_reject = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Booking
        fields = (
            "id",
            "computer",        # input
            "computer_id", "computer_name",
            "user",
            "start_date", "end_date", "start_time", "end_time",
            "reason",
            "requires_gpu", "problem_statement",
            "dataset_type", "dataset_size_value", "dataset_size_unit",
            "dataset_link", "bottleneck_explanation",
            "status", "is_temporary_booking", "original_booking_id",
            "temporary_release",
            "created_at",
            "can_cancel", "can_release", "can_approve", "can_reject",
        )
        read_only_fields = (
            "id", "user", "computer_id", "computer_name",
            "status", "is_temporary_booking", "original_booking_id",
            "temporary_release", "created_at",
            "can_cancel", "can_release", "can_approve", "can_reject",
        )

    def validate_reason(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("A reason is required.")
        return value

    def validate(self, attrs):
        """
        - inactive computer          -> key 'computer'
        - end_date before start_date -> key 'end_date'
        - start_date in the past     -> key 'start_date'
        - end_time not after start   -> key 'end_time'
        - overlap with approved      -> key 'non_field_errors'
        """
        computer = attrs.get("computer") or getattr(self.instance, "computer", None)
        start_date = attrs.get("start_date") or getattr(self.instance, "start_date", None)
        end_date = attrs.get("end_date") or getattr(self.instance, "end_date", None)
        start_time = attrs.get("start_time") or getattr(self.instance, "start_time", None)
        end_time = attrs.get("end_time") or getattr(self.instance, "end_time", None)

        errors = {}

        if computer and not computer.is_active:
            errors["computer"] = ["This computer is not available for booking."]

        if start_date is not None and end_date is not None:
            if end_date < start_date:
                errors.setdefault("end_date", []).append("must not be before start_date")
            if start_date < timezone.localdate():
                errors.setdefault("start_date", []).append("Start date cannot be in the past.")

        if start_time is not None and end_time is not None and end_time <= start_time:
            errors.setdefault("end_time", []).append("must be later than start_time")

        if not errors and computer and start_date and end_date and start_time and end_time:
            overlap = Booking.objects.filter(
                computer=computer,
                status=Booking.APPROVED,
                start_date__lte=end_date,
                end_date__gte=start_date,
                start_time__lt=end_time,
                end_time__gt=start_time,
            )
            if self.instance:
                overlap = overlap.exclude(pk=self.instance.pk)
            if overlap.exists():
                errors.setdefault("non_field_errors", []).append(
                    "Requested dates overlap with an approved booking."
                )

        if errors:
            raise serializers.ValidationError(errors)
        return attrs

    # -------------------------
    # Presentation helpers
    # -------------------------
    @extend_schema_field(PublicUserTinySerializer)
    def get_user(self, obj):
        u = getattr(obj, "user", None)
        if not u:
            return None
        return {"id": u.id, "email": u.email, "name": u.display_name}

    @extend_schema_field(TemporaryReleaseSummarySerializer(allow_null=True))
    def get_temporary_release(self, obj):
        summary = obj.temporary_release
        if summary is None:
            return None
        return TemporaryReleaseSummarySerializer(summary).data

    def _request_user(self):
        return getattr(self.context.get("request"), "user", None)

    def _is_owner(self, obj, user):
        return bool(user and obj.user_id == getattr(user, "id", None))

    def _is_admin(self, user):
        return bool(user and getattr(user, "is_admin", False))

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_cancel(self, obj):
        user = self._request_user()
        return self._is_owner(obj, user) and obj.status in (Booking.PENDING, Booking.APPROVED)

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_release(self, obj):
        user = self._request_user()
        return (
            self._is_owner(obj, user)
            and obj.status == Booking.APPROVED
            and not obj.is_temporary_booking
            and obj.end_date >= timezone.localdate()
        )

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_approve(self, obj):
        return self._is_admin(self._request_user()) and obj.status == Booking.PENDING

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_reject(self, obj):
        return self._is_admin(self._request_user()) and obj.status == Booking.PENDING


class BookingReleaseSummarySerializer(serializers.ModelSerializer):
    """Approved booking with released days, as listed next to the owner's releases."""
    computer = ComputerTinySerializer(read_only=True)
    temporary_release = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = ("id", "computer", "start_date", "end_date", "start_time", "end_time", "temporary_release")
        read_only_fields = fields

    @extend_schema_field(TemporaryReleaseSummarySerializer(allow_null=True))
    def get_temporary_release(self, obj):
        summary = obj.temporary_release
        return TemporaryReleaseSummarySerializer(summary).data if summary is not None else None
