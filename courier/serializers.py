from rest_framework import serializers

from .models import Courier, CourierApplication


class CourierSubmissionSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30)
    address = serializers.CharField(max_length=255)
    experience = serializers.CharField(max_length=255)
    transport = serializers.CharField(max_length=50)
    availability = serializers.BooleanField()
    motivation = serializers.CharField()


class CourierUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=30, required=False)
    address = serializers.CharField(max_length=255, required=False)
    experience = serializers.CharField(max_length=255, required=False)
    transport = serializers.CharField(max_length=50, required=False)
    availability = serializers.BooleanField(required=False)
    motivation = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=Courier.Status.choices, required=False)


RECORD_FIELDS = [
    "id",
    "full_name",
    "email",
    "phone",
    "address",
    "experience",
    "transport",
    "availability",
    "motivation",
    "id_document",
    "driving_license",
    "profile_picture",
    "status",
    "created_at",
    "updated_at",
]


class CourierApplicationSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="pk", read_only=True)

    class Meta:
        model = CourierApplication
        fields = RECORD_FIELDS


class CourierSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="pk", read_only=True)

    class Meta:
        model = Courier
        fields = RECORD_FIELDS + ["delivery_count", "rating"]


class PublicCourierSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="pk", read_only=True)
    photo_url = serializers.CharField(source="profile_picture_url", read_only=True, allow_null=True)

    class Meta:
        model = Courier
        fields = ["id", "full_name", "photo_url", "transport", "rating", "delivery_count"]
