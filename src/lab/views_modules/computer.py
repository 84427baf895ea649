from rest_framework import viewsets, permissions, filters
from drf_spectacular.utils import extend_schema_view, extend_schema

from ..models import Computer
from ..serializers import ComputerSerializer


@extend_schema(tags=["computers"])
@extend_schema_view(
    list=extend_schema(summary="List lab computers", auth=[]),
    retrieve=extend_schema(summary="Get a lab computer", auth=[]),
)
class ComputerViewSet(viewsets.ReadOnlyModelViewSet):
    """Active lab computers; lab admins also see retired ones."""
    serializer_class = ComputerSerializer
    permission_classes = (permissions.AllowAny,)
    filter_backends = (filters.SearchFilter, filters.OrderingFilter)
    search_fields = ('name', 'location', 'specifications')
    ordering_fields = ('name', 'location')
    ordering = ('name',)

    def get_queryset(self):
        if getattr(self.request.user, 'is_admin', False):
            return Computer.objects.all()
        return Computer.objects.filter(is_active=True)
