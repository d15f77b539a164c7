from django.conf import settings
from django.db import models

FILE_FIELDS = ("id_document", "driving_license", "profile_picture")


class CourierProfile(models.Model):
    """Fields shared by a courier application and an active courier, keyed by the owning account."""

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        primary_key=True,
        on_delete=models.CASCADE,
        related_name="%(class)s",
    )
    full_name = models.CharField(max_length=150)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    address = models.CharField(max_length=255)
    experience = models.CharField(max_length=255)
    transport = models.CharField(max_length=50)
    availability = models.BooleanField(default=True)
    motivation = models.TextField()

    # {"secure_url": ..., "public_id": ...} as returned by the file storage
    id_document = models.JSONField(null=True, blank=True)
    driving_license = models.JSONField(null=True, blank=True)
    profile_picture = models.JSONField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self):
        return self.full_name

    @property
    def profile_picture_url(self):
        return (self.profile_picture or {}).get("secure_url")

    def stored_file_ids(self):
        return [(getattr(self, name) or {}).get("public_id") for name in FILE_FIELDS]


class CourierApplication(CourierProfile):
    class Meta(CourierProfile.Meta):
        verbose_name = "courier application"


class Courier(CourierProfile):
    delivery_count = models.PositiveIntegerField(default=0)
    rating = models.FloatField(default=settings.COURIER_DEFAULT_RATING)
    rating_total = models.PositiveIntegerField(default=0)
    rating_count = models.PositiveIntegerField(default=0)

    class Meta(CourierProfile.Meta):
        indexes = [
            models.Index(fields=["status"], name="courier_status_idx"),
        ]
