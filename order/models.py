import uuid
from django.db import models
from django.contrib.auth import get_user_model

from courier.models import Courier

User = get_user_model()


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        IN_PROGRESS = "IN_PROGRESS", "In progress"
        DELIVERED = "DELIVERED", "Delivered"
        CANCELLED = "CANCELLED", "Cancelled"

    class PackageType(models.TextChoices):
        SMALL = "small", "Small"
        MEDIUM = "medium", "Medium"
        LARGE = "large", "Large"

    class Urgency(models.TextChoices):
        STANDARD = "standard", "Standard"
        EXPRESS = "express", "Express"
        URGENT = "urgent", "Urgent"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(User, on_delete=models.CASCADE, related_name="orders")
    courier = models.ForeignKey(
        Courier,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )

    pickup_address = models.CharField(max_length=255)
    pickup_lat = models.FloatField()
    pickup_lng = models.FloatField()
    delivery_address = models.CharField(max_length=255)
    delivery_lat = models.FloatField()
    delivery_lng = models.FloatField()

    package_type = models.CharField(max_length=10, choices=PackageType.choices)
    weight = models.FloatField()
    urgency = models.CharField(max_length=10, choices=Urgency.choices)
    scheduled_date = models.DateTimeField()
    special_instructions = models.TextField(blank=True)
    insurance = models.BooleanField(default=False)

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    distance = models.FloatField()
    estimated_time = models.CharField(max_length=50, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["client", "-created_at"], name="order_client_created_idx"),
            models.Index(fields=["status"], name="order_status_idx"),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.status})"

    @property
    def pickup_location(self):
        return {"address": self.pickup_address, "lat": self.pickup_lat, "lng": self.pickup_lng}

    @property
    def delivery_location(self):
        return {"address": self.delivery_address, "lat": self.delivery_lat, "lng": self.delivery_lng}
