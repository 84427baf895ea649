from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from src.lab.models import ReleaseDetail, ReleaseDetailDate
from src.lab.serializers.booking import BookingBriefSerializer
from src.lab.serializers.common import PublicUserTinySerializer

# Owners pick how they released; admin_created is set by the service only.
OWNER_RELEASE_TYPES = [
    (value, label)
    for value, label in ReleaseDetail.ReleaseType.choices
    if value != ReleaseDetail.ReleaseType.ADMIN_CREATED
]


class ReleaseCreateSerializer(serializers.Serializer):
    """
    Input of POST /api/releases/.

    Dates stay raw strings here: format, range and duplicate checks belong to
    the release service, which reports offending dates in its error body.
    """
    booking_id = serializers.IntegerField()
    release_dates = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=True),
        allow_empty=True,
    )
    reason = serializers.CharField(allow_blank=True, required=False, default="")
    user_message = serializers.CharField(allow_blank=True, required=False, max_length=255)
    release_type = serializers.ChoiceField(choices=OWNER_RELEASE_TYPES, required=False)
    is_emergency = serializers.BooleanField(required=False, default=False)

    def context_payload(self):
        data = self.validated_data
        return {
            "user_message": data.get("user_message") or "",
            "release_type": data.get("release_type"),
            "is_emergency": data.get("is_emergency", False),
        }


class ReleaseDetailDateSerializer(serializers.ModelSerializer):
    temp_booking_id = serializers.IntegerField(read_only=True, allow_null=True)
    booked_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = ReleaseDetailDate
        fields = ("date", "is_booked", "temp_booking_id", "booked_by_id", "booked_at")
        read_only_fields = fields


class ReleaseDetailSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    booking_details = ReleaseDetailDateSerializer(many=True, read_only=True)
    original_booking = BookingBriefSerializer(source="booking", read_only=True)
    admin_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = ReleaseDetail
        fields = (
            "id", "booking_id", "user_id", "release_number",
            "released_dates", "reason", "status",
            "user_message", "release_type", "is_emergency",
            "created_by_admin", "admin_id",
            "booking_details", "original_booking",
            "created_at", "updated_at",
        )
        read_only_fields = fields


class AdminReleaseSerializer(ReleaseDetailSerializer):
    """Release joined with the owner's identity, for the admin overview."""
    user_info = serializers.SerializerMethodField()

    class Meta(ReleaseDetailSerializer.Meta):
        fields = ReleaseDetailSerializer.Meta.fields + ("user_info",)
        read_only_fields = fields

    @extend_schema_field(PublicUserTinySerializer)
    def get_user_info(self, obj):
        u = obj.user
        return {"id": u.id, "email": u.email, "name": u.display_name}


class AvailableSlotSerializer(serializers.Serializer):
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    original_booking_id = serializers.IntegerField()
    computer_name = serializers.CharField()
    location = serializers.CharField()


class ClaimSerializer(serializers.Serializer):
    """Input of POST /api/releases/book/."""
    original_booking_id = serializers.IntegerField()
    date = serializers.CharField(allow_blank=True)
    reason = serializers.CharField(allow_blank=True, required=False, default="")
