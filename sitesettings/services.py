import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from .models import (
    SiteSettings,
    default_company_info,
    default_delivery_prices,
    default_promotion,
    default_vehicle_types,
)

logger = logging.getLogger(__name__)

SECTIONS = ("delivery_prices", "promotion", "coverage_zones", "vehicle_types", "company_info")


def _to_float(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value):
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _to_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_list(value):
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]


def _section(value, name):
    if not isinstance(value, dict):
        raise ValidationError({name: "Expected an object."})
    return value


def coerce_delivery_prices(value, current):
    value = _section(value, "delivery_prices")
    merged = {**default_delivery_prices(), **(current or {})}
    if "distance" in value:
        merged["distance"] = _to_float(value["distance"])
    if "weight" in value:
        merged["weight"] = _to_float(value["weight"])
    if "vehicle_type" in value:
        merged["vehicle_type"] = str(value["vehicle_type"] or "").strip()
    return merged


def coerce_promotion(value, current):
    value = _section(value, "promotion")
    merged = {**default_promotion(), **(current or {})}
    if "code" in value:
        merged["code"] = str(value["code"] or "").strip()
    if "discount" in value:
        merged["discount"] = _to_int(value["discount"])
    if "active" in value:
        merged["active"] = _to_bool(value["active"])
    return merged


def coerce_company_info(value, current):
    value = _section(value, "company_info")
    merged = {**default_company_info(), **(current or {})}
    for key in ("name", "email", "address"):
        if key in value:
            merged[key] = str(value[key] or "").strip()
    return merged


def serialize_settings(settings_row):
    return {
        "delivery_prices": {**default_delivery_prices(), **(settings_row.delivery_prices or {})},
        "promotion": {**default_promotion(), **(settings_row.promotion or {})},
        "coverage_zones": settings_row.coverage_zones or [],
        "vehicle_types": settings_row.vehicle_types or default_vehicle_types(),
        "company_info": {**default_company_info(), **(settings_row.company_info or {})},
        "updated_at": settings_row.updated_at,
    }


@transaction.atomic
def update_settings(data):
    supplied = [name for name in SECTIONS if name in data]
    if not supplied:
        raise ValidationError({"detail": f"Supply at least one of: {', '.join(SECTIONS)}."})

    row, created = SiteSettings.objects.select_for_update().get_or_create(pk=SiteSettings.SINGLETON_ID)
    if "delivery_prices" in data:
        row.delivery_prices = coerce_delivery_prices(data["delivery_prices"], row.delivery_prices)
    if "promotion" in data:
        row.promotion = coerce_promotion(data["promotion"], row.promotion)
    if "company_info" in data:
        row.company_info = coerce_company_info(data["company_info"], row.company_info)
    if "coverage_zones" in data:
        row.coverage_zones = _to_list(data["coverage_zones"])
    if "vehicle_types" in data:
        row.vehicle_types = _to_list(data["vehicle_types"])
    row.save()

    logger.info("Site settings %s: %s", "created" if created else "updated", ", ".join(supplied))
    return row
