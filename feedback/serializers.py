from rest_framework import serializers

from .models import Feedback


class FeedbackSubmitSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    courier_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


class FeedbackSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    courier_id = serializers.UUIDField(read_only=True)
    client_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Feedback
        fields = ["id", "order_id", "courier_id", "client_id", "rating", "comment", "created_at"]
