from django.db import migrations, models
import sitesettings.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SiteSettings",
            fields=[
                ("id", models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ("delivery_prices", models.JSONField(default=sitesettings.models.default_delivery_prices)),
                ("promotion", models.JSONField(default=sitesettings.models.default_promotion)),
                ("coverage_zones", models.JSONField(default=list)),
                ("vehicle_types", models.JSONField(default=sitesettings.models.default_vehicle_types)),
                ("company_info", models.JSONField(default=sitesettings.models.default_company_info)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "site settings",
                "verbose_name_plural": "site settings",
            },
        ),
    ]
