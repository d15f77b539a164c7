import uuid
from django.conf import settings
from django.db import models


class Notification(models.Model):
    class Type(models.TextChoices):
        NEW_COURIER = "NEW_COURIER", "New Courier"
        ORDER = "ORDER", "Order"
        ORDER_UPDATE = "ORDER_UPDATE", "Order Update"
        NEW_ORDER = "NEW_ORDER", "New Order"
        ADMIN_MESSAGE = "ADMIN_MESSAGE", "Admin Message"
        LOGIN = "LOGIN", "Login"
        COURIER_APPLICATION = "COURIER_APPLICATION", "Courier Application"
        GENERAL = "GENERAL", "General"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=50, choices=Type.choices, default=Type.GENERAL)
    title = models.CharField(max_length=255)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="notif_user_read_idx"),
            models.Index(fields=["type"], name="notif_type_idx"),
            models.Index(fields=["created_at"], name="notif_created_idx"),
        ]

    def __str__(self):
        return f"{self.type} -> {self.user_id}"
