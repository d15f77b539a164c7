from decimal import Decimal

from rest_framework import serializers

from .models import Order


class NumberField(serializers.FloatField):
    """Accepts JSON numbers only; numeric strings and booleans are rejected."""

    default_error_messages = {
        "invalid": "A valid number is required.",
        "not_positive": "Must be greater than 0.",
    }

    def __init__(self, *args, positive=False, **kwargs):
        self.positive = positive
        super().__init__(*args, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            self.fail("invalid")
        value = super().to_internal_value(data)
        if self.positive and value <= 0:
            self.fail("not_positive")
        return value


class LocationSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=255)
    lat = NumberField(min_value=-90, max_value=90)
    lng = NumberField(min_value=-180, max_value=180)


class OrderCreateSerializer(serializers.Serializer):
    client_id = serializers.UUIDField()
    courier_id = serializers.UUIDField()
    pickup_location = LocationSerializer()
    delivery_location = LocationSerializer()
    package_type = serializers.ChoiceField(choices=Order.PackageType.choices)
    weight = NumberField(positive=True)
    urgency = serializers.ChoiceField(choices=Order.Urgency.choices)
    scheduled_date = serializers.DateTimeField()
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    insurance = serializers.BooleanField(required=False, default=False)
    amount = NumberField(positive=True)
    distance = NumberField(positive=True)
    estimated_time = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=Order.Status.choices, required=False, default=Order.Status.PENDING)

    def validate_amount(self, value):
        amount = Decimal(str(value)).quantize(Decimal("0.01"))
        if amount <= 0:
            raise serializers.ValidationError("Must be greater than 0.")
        if amount >= Decimal("1e10"):
            raise serializers.ValidationError("Amount is too large.")
        return amount


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)


class OrderSerializer(serializers.ModelSerializer):
    client_id = serializers.UUIDField(read_only=True)
    courier_id = serializers.UUIDField(read_only=True, allow_null=True)
    pickup_location = serializers.DictField(read_only=True)
    delivery_location = serializers.DictField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "client_id",
            "courier_id",
            "pickup_location",
            "delivery_location",
            "package_type",
            "weight",
            "urgency",
            "scheduled_date",
            "special_instructions",
            "insurance",
            "amount",
            "distance",
            "estimated_time",
            "status",
            "created_at",
            "updated_at",
        ]


class ClientOrderHistorySerializer(serializers.ModelSerializer):
    date = serializers.DateTimeField(source="created_at", read_only=True)
    amount = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ["id", "date", "amount", "status"]

    def get_amount(self, obj):
        return "%.2f €" % obj.amount
