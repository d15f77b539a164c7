from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Type

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound

from notifications.models import Notification
from notifications.services import NotificationService, NotificationTemplates
from storage.services import delete_file, stored_file_from_url, upload_file, validate_upload

from .models import FILE_FIELDS, Courier, CourierApplication, CourierProfile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "full_name",
    "email",
    "phone",
    "address",
    "experience",
    "transport",
    "availability",
    "motivation",
)


def _collect_files(files: Mapping, data: Mapping) -> Dict[str, Dict[str, str]]:
    """Upload new documents, or accept references to documents already in storage."""
    stored = {}
    for name in FILE_FIELDS:
        uploaded = files.get(name) if files else None
        if uploaded is not None:
            stored[name] = upload_file(validate_upload(uploaded, field_name=name)).as_dict()
            continue
        existing = stored_file_from_url(data.get(name)) if data else None
        if existing is not None:
            stored[name] = existing.as_dict()
    return stored


def submit_application(
    user,
    model: Type[CourierProfile],
    data: Dict[str, Any],
    files: Optional[Mapping] = None,
    raw_data: Optional[Mapping] = None,
) -> CourierProfile:
    documents = _collect_files(files or {}, raw_data or {})
    defaults = {field: data[field] for field in PROFILE_FIELDS}
    for name in FILE_FIELDS:
        defaults[name] = documents.get(name)

    record, _ = model.objects.update_or_create(user=user, defaults=defaults)
    logger.info("Courier %s saved for user=%s", model._meta.verbose_name, user.pk)

    try:
        title, message, payload = NotificationTemplates.courier_application_received()
        NotificationService.send(user.pk, title, message, Notification.Type.COURIER_APPLICATION, payload)
        title, message, payload = NotificationTemplates.new_courier_application(record)
        NotificationService.broadcast_to_admins(title, message, Notification.Type.NEW_COURIER, payload)
    except Exception:
        logger.exception("Failed to send courier application notifications for user=%s", user.pk)
    return record


def update_record(record: CourierProfile, data: Dict[str, Any], files: Optional[Mapping] = None) -> CourierProfile:
    update_fields = ["updated_at"]
    for field in PROFILE_FIELDS + ("status",):
        if field in data and data[field] not in (None, ""):
            setattr(record, field, data[field])
            update_fields.append(field)

    for name in FILE_FIELDS:
        uploaded = files.get(name) if files else None
        if uploaded is None:
            continue
        replacement = upload_file(validate_upload(uploaded, field_name=name)).as_dict()
        previous = getattr(record, name) or {}
        if previous.get("public_id"):
            delete_file(previous["public_id"])
        setattr(record, name, replacement)
        update_fields.append(name)

    record.save(update_fields=update_fields)
    return record


def delete_record(record: CourierProfile) -> None:
    for public_id in record.stored_file_ids():
        delete_file(public_id)
    record.delete()


@transaction.atomic
def approve_application(pk) -> Courier:
    application = CourierApplication.objects.select_for_update().filter(pk=pk).first()
    if not application:
        raise NotFound("Courier application not found")

    defaults = {field: getattr(application, field) for field in PROFILE_FIELDS + FILE_FIELDS}
    defaults.update(
        {
            "status": Courier.Status.ACTIVE,
            "delivery_count": 0,
            "rating": Courier._meta.get_field("rating").default,
            "rating_total": 0,
            "rating_count": 0,
        }
    )
    courier, _ = Courier.objects.update_or_create(user_id=application.pk, defaults=defaults)
    application.delete()
    logger.info("Courier application %s approved", courier.pk)
    return courier


def increment_delivery_count(courier_id) -> None:
    """Must run inside the caller's transaction; the order insert and this update commit together."""
    updated = Courier.objects.filter(pk=courier_id).update(
        delivery_count=F("delivery_count") + 1,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise NotFound("Courier not found")
