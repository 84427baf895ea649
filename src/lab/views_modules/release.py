import logging

from django_filters import rest_framework as df
from rest_framework import viewsets, permissions, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse, inline_serializer
)
from rest_framework import serializers as rf_serializers

from ..models import Booking, ReleaseDetail
from ..serializers import (
    BookingSerializer, BookingReleaseSummarySerializer,
    ReleaseCreateSerializer, ReleaseDetailSerializer, AdminReleaseSerializer,
    AvailableSlotSerializer, ClaimSerializer,
)
from ..permissions import IsLabAdmin
from ..throttling import ActionScopedRateThrottle
from ..services import create_release, cancel_release, list_available_slots, claim_released_date
from .filters import ReleaseFilter

logger = logging.getLogger(__name__)

LISTED_STATUSES = (
    ReleaseDetail.Status.ACTIVE,
    ReleaseDetail.Status.PARTIALLY_BOOKED,
    ReleaseDetail.Status.FULLY_BOOKED,
)

DATES_ERROR_EXAMPLE = OpenApiExample(
    "Dates outside the booking",
    value={"detail": "All release dates must be within your booking period.", "invalid_dates": ["2025-09-09"]},
    response_only=True,
    status_codes=["400"],
)


@extend_schema(tags=["temporary releases"])
@extend_schema_view(
    list=extend_schema(
        summary="My temporary releases",
        description=(
            "Releases of the current user that are not cancelled, plus the approved "
            "bookings that currently have released days. Lab admins may pass ?user=<id>."
        ),
        parameters=[
            OpenApiParameter("user", OpenApiTypes.INT, description="Owner id (lab admins only)"),
        ],
        responses={
            200: inline_serializer(
                name="UserReleasesResponse",
                fields={
                    "release_details": ReleaseDetailSerializer(many=True),
                    "booking_summaries": BookingReleaseSummarySerializer(many=True),
                },
            ),
        },
    ),
    create=extend_schema(
        summary="Release booked days",
        description=(
            "Give specific days of an approved booking back so other users can claim them. "
            "Lab admins may release days of any booking on behalf of its owner."
        ),
        request=ReleaseCreateSerializer,
        examples=[
            OpenApiExample(
                "Release two days",
                value={
                    "booking_id": 12,
                    "release_dates": ["2025-09-02", "2025-09-03"],
                    "reason": "Conference travel",
                    "user_message": "Away at ICML",
                },
                request_only=True,
            ),
            DATES_ERROR_EXAMPLE,
        ],
        responses={
            201: inline_serializer(
                name="ReleaseCreatedResponse",
                fields={
                    "detail": rf_serializers.CharField(),
                    "release": ReleaseDetailSerializer(),
                    "release_number": rf_serializers.IntegerField(),
                },
            ),
            400: OpenApiResponse(description="Validation, range, duplicate or state error"),
            403: OpenApiResponse(description="Not the booking owner"),
            404: OpenApiResponse(description="Booking not found"),
        },
    ),
    retrieve=extend_schema(
        summary="Get a temporary release",
        responses={
            200: ReleaseDetailSerializer,
            404: OpenApiResponse(description="Release not found"),
        },
    ),
)
class ReleaseViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Temporary releases of booked days and claims of released days.

    Business rules live in ``src.lab.services``; this view only parses input
    and shapes responses. Service errors are rendered by DRF's handler.
    """
    serializer_class = ReleaseDetailSerializer
    permission_classes = (permissions.IsAuthenticated,)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_class = ReleaseFilter

    throttle_classes = (ActionScopedRateThrottle,)
    throttle_scope_map = {
        'create': 'releases_mutation',
        'cancel': 'releases_mutation',
        'book': 'releases_mutation',
        'available': 'releases_available',
    }

    def get_queryset(self):
        qs = (
            ReleaseDetail.objects
            .select_related('user', 'booking__computer')
            .prefetch_related('booking_details')
        )
        user = self.request.user
        if getattr(user, 'is_admin', False):
            return qs
        return qs.filter(user=user)

    def get_serializer_class(self):
        if self.action == 'create':
            return ReleaseCreateSerializer
        if self.action == 'all':
            return AdminReleaseSerializer
        if self.action == 'available':
            return AvailableSlotSerializer
        if self.action == 'book':
            return ClaimSerializer
        return ReleaseDetailSerializer

    def _target_user_id(self, request):
        user = request.user
        requested = request.query_params.get('user')
        if requested and getattr(user, 'is_admin', False):
            try:
                return int(requested)
            except (TypeError, ValueError):
                raise rf_serializers.ValidationError({"user": "Must be an integer id."})
        return user.pk

    def list(self, request, *args, **kwargs):
        user_id = self._target_user_id(request)
        releases = (
            self.get_queryset()
            .filter(user_id=user_id, status__in=LISTED_STATUSES)
            .order_by('-created_at', '-id')
        )
        summaries = (
            Booking.objects
            .filter(user_id=user_id, status=Booking.APPROVED, has_active_releases=True)
            .select_related('computer')
            .prefetch_related('released_dates')
            .order_by('-created_at')
        )
        return Response({
            "release_details": ReleaseDetailSerializer(releases, many=True).data,
            "booking_summaries": BookingReleaseSummarySerializer(summaries, many=True).data,
        })

    def create(self, request, *args, **kwargs):
        serializer = ReleaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        release, release_number = create_release(
            data['booking_id'],
            request.user,
            data['release_dates'],
            data['reason'],
            context=serializer.context_payload(),
        )
        release = self.get_queryset().get(pk=release.pk)
        return Response(
            {
                "detail": "Temporary release created successfully",
                "release": ReleaseDetailSerializer(release).data,
                "release_number": release_number,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        summary="All temporary releases (lab admin)",
        description="Every release with the owner's identity and the original booking.",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, description="Filter by release status"),
            OpenApiParameter("booking", OpenApiTypes.INT, description="Filter by original booking id"),
            OpenApiParameter("user", OpenApiTypes.INT, description="Filter by owner id"),
            OpenApiParameter("computer", OpenApiTypes.INT, description="Filter by computer id"),
        ],
        responses={
            200: AdminReleaseSerializer(many=True),
            403: OpenApiResponse(description="Lab admin role required"),
        },
    )
    @action(detail=False, methods=['get'], permission_classes=[permissions.IsAuthenticated, IsLabAdmin])
    def all(self, request):
        qs = self.filter_queryset(self.get_queryset()).order_by('-created_at', '-id')
        return Response(AdminReleaseSerializer(qs, many=True).data)

    @extend_schema(
        summary="Cancel a temporary release",
        description="Only possible while none of its days has been claimed.",
        request=None,
        responses={
            200: inline_serializer(
                name="ReleaseCancelledResponse",
                fields={"detail": rf_serializers.CharField(), "release": ReleaseDetailSerializer()},
            ),
            400: OpenApiResponse(description="Already cancelled"),
            403: OpenApiResponse(description="Not the owner"),
            404: OpenApiResponse(description="Release not found"),
            409: OpenApiResponse(description="Some days were already claimed"),
        },
    )
    @action(detail=True, methods=['patch'])
    def cancel(self, request, pk=None):
        release = cancel_release(pk, request.user)
        release = ReleaseDetail.objects.select_related('booking__computer').get(pk=release.pk)
        return Response({
            "detail": "Temporary release cancelled successfully",
            "release": ReleaseDetailSerializer(release).data,
        })

    @extend_schema(
        summary="Available released days of a computer",
        description="Unclaimed released days between start_date and end_date (inclusive).",
        auth=[],
        parameters=[
            OpenApiParameter("start_date", OpenApiTypes.DATE, required=True, description="First day (YYYY-MM-DD)"),
            OpenApiParameter("end_date", OpenApiTypes.DATE, required=True, description="Last day (YYYY-MM-DD)"),
        ],
        responses={
            200: inline_serializer(
                name="AvailableSlotsResponse",
                fields={"data": AvailableSlotSerializer(many=True)},
            ),
            400: OpenApiResponse(description="Missing or malformed bounds"),
        },
    )
    @action(
        detail=False,
        methods=['get'],
        url_path=r'available/(?P<computer_id>\d+)',
        permission_classes=[permissions.AllowAny],
    )
    def available(self, request, computer_id=None):
        slots = list_available_slots(
            computer_id,
            request.query_params.get('start_date'),
            request.query_params.get('end_date'),
        )
        return Response({"data": AvailableSlotSerializer(list(slots), many=True).data})

    @extend_schema(
        summary="Claim a released day",
        description="Creates an approved single-day booking on the released day.",
        request=ClaimSerializer,
        examples=[
            OpenApiExample(
                "Claim",
                value={"original_booking_id": 12, "date": "2025-09-02", "reason": "Benchmark run"},
                request_only=True,
            ),
        ],
        responses={
            201: inline_serializer(
                name="ClaimResponse",
                fields={"detail": rf_serializers.CharField(), "booking": BookingSerializer()},
            ),
            400: OpenApiResponse(description="Malformed input or no active release"),
            403: OpenApiResponse(description="Cannot claim a day of your own booking"),
            404: OpenApiResponse(description="Booking not found"),
            409: OpenApiResponse(description="Day no longer available"),
        },
    )
    @action(detail=False, methods=['post'])
    def book(self, request):
        serializer = ClaimSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = claim_released_date(
            data['original_booking_id'],
            data['date'],
            request.user,
            data['reason'],
        )
        return Response(
            {
                "detail": "Temporary booking created successfully",
                "booking": BookingSerializer(booking, context=self.get_serializer_context()).data,
            },
            status=status.HTTP_201_CREATED,
        )
