from django.contrib import admin, messages

from .exceptions import ReleaseError
from .models import Computer, Booking, ReleasedDate, ReleaseDetail, ReleaseDetailDate, Notification
from .services import approve_booking, reject_booking, rebuild_summary


@admin.register(Computer)
class ComputerAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'location', 'operating_system', 'is_active', 'created_at')
    list_filter = ('is_active', 'operating_system', 'location')
    search_fields = ('name', 'location', 'specifications')
    readonly_fields = ('created_at',)
    ordering = ('name',)


def _run_workflow(modeladmin, request, qs, operation, verb):
    done = 0
    for booking in qs.filter(status=Booking.PENDING):
        try:
            operation(booking.pk, request.user)
            done += 1
        except ReleaseError as exc:
            modeladmin.message_user(request, f"Booking {booking.pk}: {exc}", messages.WARNING)
    modeladmin.message_user(request, f"{done} booking(s) {verb}.")


@admin.action(description="Approve selected pending bookings")
def approve_bookings(modeladmin, request, qs):
    _run_workflow(modeladmin, request, qs, approve_booking, "approved")


@admin.action(description="Reject selected pending bookings")
def reject_bookings(modeladmin, request, qs):
    _run_workflow(modeladmin, request, qs, reject_booking, "rejected")


@admin.action(description="Rebuild release summary from the ledger")
def rebuild_release_summaries(modeladmin, request, qs):
    drifted = 0
    for booking in qs:
        added, removed = rebuild_summary(booking)
        if added or removed:
            drifted += 1
    modeladmin.message_user(request, f"Rebuilt {qs.count()} summary(ies); {drifted} had drifted.")


class ReleasedDateInline(admin.TabularInline):
    model = ReleasedDate
    fk_name = 'booking'
    extra = 0
    fields = ('date', 'is_booked', 'temp_booking')
    readonly_fields = fields
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'computer', 'user_email', 'status',
        'start_date', 'end_date', 'start_time', 'end_time',
        'is_temporary_booking', 'total_released_days', 'created_at',
    )
    list_filter = (
        'status',
        'computer',
        'is_temporary_booking',
        'has_active_releases',
        'start_date',
        'created_at',
    )
    date_hierarchy = 'start_date'
    search_fields = ('id', 'reason', 'user__email', 'computer__name')
    autocomplete_fields = ('user', 'original_booking')
    readonly_fields = (
        'has_active_releases', 'total_released_days', 'releases_updated_at',
        'release_counter', 'created_at', 'updated_at',
    )
    ordering = ('-created_at',)
    list_select_related = ('computer', 'user')
    inlines = (ReleasedDateInline,)
    actions = (approve_bookings, reject_bookings, rebuild_release_summaries)

    @admin.display(ordering='user__email', description='User')
    def user_email(self, obj):
        return getattr(obj.user, 'email', None)


class ReleaseDetailDateInline(admin.TabularInline):
    model = ReleaseDetailDate
    extra = 0
    fields = ('date', 'is_booked', 'temp_booking', 'booked_by', 'booked_at')
    readonly_fields = fields
    can_delete = False


@admin.register(ReleaseDetail)
class ReleaseDetailAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'booking', 'release_number', 'user', 'status',
        'release_type', 'is_emergency', 'created_by_admin', 'created_at',
    )
    list_filter = ('status', 'release_type', 'is_emergency', 'created_by_admin', 'created_at')
    date_hierarchy = 'created_at'
    search_fields = ('reason', 'user__email', 'booking__id', 'booking__computer__name')
    # Releases change only through the release services
    readonly_fields = (
        'booking', 'user', 'release_number', 'released_dates', 'status',
        'release_type', 'created_by_admin', 'admin', 'created_at', 'updated_at',
    )
    ordering = ('-created_at',)
    list_select_related = ('booking', 'user')
    inlines = (ReleaseDetailDateInline,)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.action(description="Mark selected notifications as read")
def mark_notifications_read(modeladmin, request, qs):
    qs.filter(user__isnull=False).update(is_read=True)
    request.user.read_notifications.add(*qs.filter(user__isnull=True))


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'type', 'user', 'is_read', 'created_at')
    list_filter = ('type', 'is_read', 'created_at')
    search_fields = ('message', 'user__email')
    readonly_fields = ('metadata', 'created_at')
    filter_horizontal = ('read_by',)
    ordering = ('-created_at',)
    list_select_related = ('user',)
    actions = (mark_notifications_read,)
