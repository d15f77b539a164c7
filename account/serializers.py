import re

from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.exceptions import ConflictError
from .models import DEFAULT_DASHBOARD_LAYOUT

User = get_user_model()

PHONE_RE = re.compile(r"^[1-9]\d{1,14}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SignupSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=30)
    last_name = serializers.CharField(max_length=30)
    email = serializers.CharField(max_length=254)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField(max_length=255)
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)

    def validate_email(self, value):
        email = value.strip().lower()
        if not EMAIL_RE.match(email):
            raise serializers.ValidationError("Invalid e-mail address.")
        if User.objects.filter(email__iexact=email).exists():
            raise ConflictError("An account with this e-mail already exists.")
        return email

    def validate_phone(self, value):
        phone = value.strip().lstrip("+").replace(" ", "")
        if not PHONE_RE.match(phone):
            raise serializers.ValidationError("Invalid phone number.")
        return phone

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            first_name=validated_data["first_name"],
            last_name=validated_data["last_name"],
            display_name=f"{validated_data['first_name']} {validated_data['last_name']}",
            phone_number=validated_data["phone"],
            address=validated_data["address"],
            role=User.Role.CLIENT,
            provider=User.Provider.PASSWORD,
        )


class SigninSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)
    push_token = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class GoogleSigninSerializer(serializers.Serializer):
    id_token = serializers.CharField()
    push_token = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class EmailSerializer(serializers.Serializer):
    email = serializers.CharField()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "phone_number",
            "address",
            "photo_url",
            "role",
            "email_verified",
            "provider",
            "primary_color",
            "dashboard_layout",
            "last_login",
            "created_at",
        ]
        read_only_fields = fields


class PreferencesSerializer(serializers.Serializer):
    primary_color = serializers.RegexField(
        r"^#[0-9A-Fa-f]{6}$",
        required=False,
        error_messages={"invalid": "Expected a colour like #3B82F6."},
    )
    dashboard_layout = serializers.ListField(
        child=serializers.ChoiceField(choices=DEFAULT_DASHBOARD_LAYOUT),
        allow_empty=False,
        required=False,
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No preferences supplied.")
        return attrs


class ClientSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone_number", "address"]
