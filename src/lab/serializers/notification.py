from rest_framework import serializers

from src.lab.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = ("id", "type", "message", "metadata", "is_read", "created_at")
        read_only_fields = fields

    def get_is_read(self, obj) -> bool:
        # Admin-addressed rows carry a per-viewer flag annotated by the view
        if obj.user_id is None:
            seen = getattr(obj, "read_by_me", None)
            if seen is not None:
                return seen
            request = self.context.get("request")
            return bool(request and obj.is_read_by(request.user))
        return obj.is_read
