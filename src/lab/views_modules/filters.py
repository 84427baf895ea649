from django_filters import rest_framework as df

from ..models import Booking, ReleaseDetail


class BookingFilter(df.FilterSet):
    status      = df.ChoiceFilter(field_name='status', choices=Booking.STATUS_CHOICES, label='Status')
    computer    = df.NumberFilter(field_name='computer_id', label='Computer id')
    date_from   = df.DateFilter(field_name='end_date', lookup_expr='gte', label='Active on or after (YYYY-MM-DD)')
    date_to     = df.DateFilter(field_name='start_date', lookup_expr='lte', label='Active on or before (YYYY-MM-DD)')
    temporary   = df.BooleanFilter(field_name='is_temporary_booking', label='Only temporary bookings')
    has_releases = df.BooleanFilter(field_name='has_active_releases', label='Has released days')
    mine        = df.BooleanFilter(method='filter_mine', label='Only my bookings')

    def filter_mine(self, queryset, name, value):
        """Admins see every booking; ?mine=true narrows to their own."""
        if not value:
            return queryset

        req = getattr(self, 'request', None)
        user = getattr(req, 'user', None)

        if not user or not user.is_authenticated:
            return queryset.none()

        return queryset.filter(user=user)

    class Meta:
        model = Booking
        fields = ['status', 'computer', 'date_from', 'date_to', 'temporary', 'has_releases', 'mine']


class ReleaseFilter(df.FilterSet):
    status    = df.ChoiceFilter(field_name='status', choices=ReleaseDetail.Status.choices, label='Status')
    booking   = df.NumberFilter(field_name='booking_id', label='Original booking id')
    user      = df.NumberFilter(field_name='user_id', label='Owner id')
    computer  = df.NumberFilter(field_name='booking__computer_id', label='Computer id')
    emergency = df.BooleanFilter(field_name='is_emergency', label='Only emergency releases')

    class Meta:
        model = ReleaseDetail
        fields = ['status', 'booking', 'user', 'computer', 'emergency']
