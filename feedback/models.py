import uuid

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from courier.models import Courier


class Feedback(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Feedback outlives the order it rates.
    order = models.ForeignKey(
        "order.Order",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="feedback",
    )
    courier = models.ForeignKey(Courier, on_delete=models.CASCADE, related_name="feedback")
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="feedback")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["order", "client"], name="feedback_unique_order_client"),
        ]

    def __str__(self):
        return f"{self.rating}/5 for {self.courier_id}"
