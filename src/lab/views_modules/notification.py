from django.db.models import Q, Exists, OuterRef
from rest_framework import viewsets, permissions, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema_view, extend_schema, OpenApiResponse

from ..models import Notification
from ..pagination import LabPagination
from ..serializers import NotificationSerializer


@extend_schema(tags=["notifications"])
@extend_schema_view(
    list=extend_schema(
        summary="My notifications",
        description="Personal notifications; lab admins also receive the events addressed to admins.",
    ),
)
class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    permission_classes = (permissions.IsAuthenticated,)
    pagination_class = LabPagination

    def get_queryset(self):
        user = self.request.user
        inbox = Q(user=user)
        if getattr(user, 'is_admin', False):
            inbox |= Q(user__isnull=True)
        read_by_me = Notification.objects.filter(pk=OuterRef('pk'), read_by=user)
        return (
            Notification.objects
            .filter(inbox)
            .annotate(read_by_me=Exists(read_by_me))
            .order_by('-created_at', '-id')
        )

    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={200: NotificationSerializer, 404: OpenApiResponse(description="Not found")},
    )
    @action(detail=True, methods=['post'], url_path='mark-read')
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        notification.mark_read_by(request.user)
        notification.read_by_me = True
        return Response(self.get_serializer(notification).data)

    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description="Number of notifications updated")},
    )
    @action(detail=False, methods=['post'], url_path='mark-all-read')
    def mark_all_read(self, request):
        user = request.user
        updated = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
        if getattr(user, 'is_admin', False):
            unseen = list(Notification.objects.filter(user__isnull=True).exclude(read_by=user))
            user.read_notifications.add(*unseen)
            updated += len(unseen)
        return Response({"detail": "All notifications marked as read", "updated": updated})
