from rest_framework import serializers

from core.exceptions import ConflictError
from .models import ContactMessage, NewsletterSubscriber


class NewsletterSubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        email = value.strip().lower()
        if NewsletterSubscriber.objects.filter(email__iexact=email).exists():
            raise ConflictError("This e-mail is already subscribed.")
        return email

    def create(self, validated_data):
        return NewsletterSubscriber.objects.create(**validated_data)


class ContactMessageSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    message = serializers.CharField(max_length=1000)
    user_id = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = ContactMessage
        fields = ["id", "name", "email", "message", "user_id", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_user_id(self, value):
        return (value or "").strip() or ContactMessage.ANONYMOUS
