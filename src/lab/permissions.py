from rest_framework import permissions


class IsLabAdmin(permissions.BasePermission):
    """Only users with the lab admin role (or staff)."""
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_admin", False))


class IsBookingOwnerOrLabAdmin(permissions.BasePermission):
    """
    Read allowed for the booking owner or a lab admin.
    approve/reject: only lab admin.
    cancel: only booking owner.
    """
    def has_object_permission(self, request, view, obj):
        user = request.user
        is_admin = getattr(user, "is_admin", False)
        is_owner = obj.user_id == getattr(user, "id", None)

        if request.method in permissions.SAFE_METHODS:
            return is_owner or is_admin

        action = getattr(view, "action", None)
        if action in ("approve", "reject"):
            return is_admin
        if action == "cancel":
            return is_owner

        return False
