from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def profile_fields(related_name):
    return [
        (
            "user",
            models.OneToOneField(
                on_delete=django.db.models.deletion.CASCADE,
                primary_key=True,
                related_name=related_name,
                serialize=False,
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        ("full_name", models.CharField(max_length=150)),
        ("email", models.EmailField(max_length=254)),
        ("phone", models.CharField(max_length=30)),
        ("address", models.CharField(max_length=255)),
        ("experience", models.CharField(max_length=255)),
        ("transport", models.CharField(max_length=50)),
        ("availability", models.BooleanField(default=True)),
        ("motivation", models.TextField()),
        ("id_document", models.JSONField(blank=True, null=True)),
        ("driving_license", models.JSONField(blank=True, null=True)),
        ("profile_picture", models.JSONField(blank=True, null=True)),
        ("status", models.CharField(blank=True, choices=[("ACTIVE", "Active")], default="", max_length=20)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CourierApplication",
            fields=profile_fields("courierapplication"),
            options={
                "verbose_name": "courier application",
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Courier",
            fields=profile_fields("courier")
            + [
                ("delivery_count", models.PositiveIntegerField(default=0)),
                ("rating", models.FloatField(default=4.8)),
                ("rating_total", models.PositiveIntegerField(default=0)),
                ("rating_count", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.AddIndex(
            model_name="courier",
            index=models.Index(fields=["status"], name="courier_status_idx"),
        ),
    ]
