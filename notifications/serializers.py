from rest_framework import serializers

from .models import Notification

MESSAGE_CHARSET = r"^[a-zA-Z0-9\s.,!?'-]+$"


class PushTokenSerializer(serializers.Serializer):
    token = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    user_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_token(self, value):
        value = (value or "").strip()
        return value or None


class AdminMessageSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    title = serializers.RegexField(
        MESSAGE_CHARSET,
        max_length=100,
        error_messages={"invalid": "Title contains characters that are not allowed."},
    )
    message = serializers.RegexField(
        MESSAGE_CHARSET,
        max_length=500,
        error_messages={"invalid": "Message contains characters that are not allowed."},
    )


class MarkReadSerializer(serializers.Serializer):
    notification_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "type", "title", "message", "payload", "is_read", "created_at"]
