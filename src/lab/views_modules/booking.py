import logging

from django_filters import rest_framework as df
from rest_framework import viewsets, permissions, mixins, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse
)

from ..models import Booking
from ..serializers import BookingSerializer
from ..permissions import IsBookingOwnerOrLabAdmin
from ..pagination import LabPagination
from ..throttling import ActionScopedRateThrottle
from ..services import submit_booking, approve_booking, reject_booking, cancel_booking
from .filters import BookingFilter

logger = logging.getLogger(__name__)


@extend_schema(tags=["bookings"])
@extend_schema_view(
    list=extend_schema(
        summary="List bookings",
        description="Own bookings; lab admins see every booking (use ?mine=true for their own).",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, description="Filter by status"),
            OpenApiParameter("computer", OpenApiTypes.INT, description="Filter by computer id"),
            OpenApiParameter(
                "date_from", OpenApiTypes.DATE,
                description="Bookings still running on or after this day",
                examples=[OpenApiExample("From 2025-09-01", value="2025-09-01")],
            ),
            OpenApiParameter("date_to", OpenApiTypes.DATE, description="Bookings starting on or before this day"),
            OpenApiParameter("has_releases", OpenApiTypes.BOOL, description="Only bookings with released days"),
        ],
        responses={200: BookingSerializer},
    ),
    create=extend_schema(
        summary="Request a booking",
        description="Submit a booking request. It starts as pending until a lab admin approves it.",
        examples=[
            OpenApiExample(
                "GPU training request",
                value={
                    "computer": 1,
                    "start_date": "2025-09-01",
                    "end_date": "2025-09-05",
                    "start_time": "09:00",
                    "end_time": "17:00",
                    "reason": "Fine-tuning a segmentation model",
                    "requires_gpu": True,
                    "problem_statement": "Semantic segmentation of microscopy images",
                    "dataset_type": "Image",
                    "dataset_size_value": 40,
                    "dataset_size_unit": "GB",
                },
                request_only=True,
            )
        ],
        responses={
            201: BookingSerializer,
            400: OpenApiResponse(description="Validation error or overlap with an approved booking"),
            401: OpenApiResponse(description="Authentication required"),
        }
    ),
    retrieve=extend_schema(
        summary="Get booking details",
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Booking not found"),
        }
    ),
)
class BookingViewSet(mixins.CreateModelMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """
    Booking requests and their approval workflow.

    Bookings are never edited in place; their lifecycle is driven by the
    approve, reject and cancel actions.
    """
    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated, IsBookingOwnerOrLabAdmin)
    pagination_class = LabPagination

    filter_backends = (df.DjangoFilterBackend, filters.OrderingFilter)
    filterset_class = BookingFilter
    ordering_fields = ('start_date', 'created_at', 'status')
    ordering = ('-created_at',)

    throttle_classes = (ActionScopedRateThrottle,)
    throttle_scope_map = {
        'create': 'bookings_mutation',
        'approve': 'bookings_mutation',
        'reject': 'bookings_mutation',
        'cancel': 'bookings_mutation',
    }

    def get_queryset(self):
        user = self.request.user
        qs = (
            Booking.objects
            .select_related('user', 'computer')
            .prefetch_related('released_dates')
        )
        if getattr(user, 'is_admin', False):
            return qs
        return qs.filter(user=user)

    def perform_create(self, serializer):
        booking = serializer.save(user=self.request.user, status=Booking.PENDING)
        logger.info("Booking request %s created by user %s", booking.pk, self.request.user.pk)
        submit_booking(booking)

    def _respond(self, booking, detail):
        booking = self.get_queryset().get(pk=booking.pk)
        return Response({
            "detail": detail,
            "booking": self.get_serializer(booking).data,
        })

    @extend_schema(
        summary="Approve booking",
        description="Approve a pending booking (lab admin only). Overlapping pending requests are rejected.",
        request=None,
        responses={
            200: OpenApiResponse(description="Booking approved"),
            400: OpenApiResponse(description="Booking is not pending"),
            403: OpenApiResponse(description="Permission denied"),
            409: OpenApiResponse(description="Overlaps an approved booking"),
        }
    )
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        booking = approve_booking(self.get_object().pk, request.user)
        return self._respond(booking, "Booking approved successfully.")

    @extend_schema(
        summary="Reject booking",
        description="Reject a pending booking (lab admin only).",
        request=None,
        responses={
            200: OpenApiResponse(description="Booking rejected"),
            400: OpenApiResponse(description="Booking is not pending"),
            403: OpenApiResponse(description="Permission denied"),
        }
    )
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        booking = reject_booking(self.get_object().pk, request.user)
        return self._respond(booking, "Booking rejected successfully.")

    @extend_schema(
        summary="Cancel booking",
        description=(
            "Cancel a pending or approved booking (owner only). Open temporary releases "
            "are cancelled too; bookings whose released days were claimed cannot be cancelled."
        ),
        request=None,
        responses={
            200: OpenApiResponse(description="Booking cancelled"),
            400: OpenApiResponse(description="Booking cannot be cancelled in its current state"),
            403: OpenApiResponse(description="Permission denied"),
            409: OpenApiResponse(description="Released days already claimed"),
        }
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        booking = cancel_booking(self.get_object().pk, request.user)
        return self._respond(booking, "Booking cancelled successfully.")
