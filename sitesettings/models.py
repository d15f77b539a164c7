from django.db import models

DEFAULT_VEHICLE_TYPES = ["moto", "voiture", "vélo"]


def default_delivery_prices():
    return {"distance": 0.0, "weight": 0.0, "vehicle_type": ""}


def default_promotion():
    return {"code": "", "discount": 0, "active": False}


def default_company_info():
    return {"name": "", "email": "", "address": ""}


def default_vehicle_types():
    return list(DEFAULT_VEHICLE_TYPES)


class SiteSettings(models.Model):
    """Single row holding pricing, coverage and company configuration."""

    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)
    delivery_prices = models.JSONField(default=default_delivery_prices)
    promotion = models.JSONField(default=default_promotion)
    coverage_zones = models.JSONField(default=list)
    vehicle_types = models.JSONField(default=default_vehicle_types)
    company_info = models.JSONField(default=default_company_info)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "site settings"
        verbose_name_plural = "site settings"

    def __str__(self):
        return "Site settings"

    @classmethod
    def load(cls):
        return cls.objects.filter(pk=cls.SINGLETON_ID).first()
