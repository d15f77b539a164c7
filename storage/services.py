import logging
from dataclasses import dataclass

import cloudinary
import cloudinary.uploader
from django.conf import settings
from rest_framework.exceptions import ValidationError

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    secure_url: str
    public_id: str

    def as_dict(self):
        return {"secure_url": self.secure_url, "public_id": self.public_id}


def _configure() -> bool:
    if not all([settings.CLOUDINARY_CLOUD_NAME, settings.CLOUDINARY_API_KEY, settings.CLOUDINARY_API_SECRET]):
        return False
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )
    return True


def validate_upload(uploaded_file, field_name="file"):
    if uploaded_file is None:
        raise ValidationError({field_name: "No file provided."})
    content_type = getattr(uploaded_file, "content_type", "") or ""
    if content_type not in settings.UPLOAD_ALLOWED_CONTENT_TYPES:
        raise ValidationError({field_name: f"Unsupported file type: {content_type or 'unknown'}."})
    if uploaded_file.size > settings.UPLOAD_MAX_BYTES:
        raise ValidationError({field_name: "File exceeds the 5MB limit."})
    return uploaded_file


def upload_file(uploaded_file, folder=None) -> StoredFile:
    if not _configure():
        raise ExternalServiceError("File storage is not configured.")
    try:
        result = cloudinary.uploader.upload(
            uploaded_file,
            folder=folder or settings.CLOUDINARY_FOLDER,
            resource_type="auto",
            use_filename=True,
            unique_filename=True,
            overwrite=True,
        )
    except Exception as exc:
        logger.exception("Cloudinary upload failed name=%s", getattr(uploaded_file, "name", ""))
        raise ExternalServiceError(f"File upload failed: {exc}") from exc
    return StoredFile(secure_url=result["secure_url"], public_id=result["public_id"])


def delete_file(public_id) -> bool:
    """Best-effort removal; failures are logged and reported as False."""
    if not public_id:
        return False
    if not _configure():
        logger.warning("Skipping delete of %s: file storage is not configured", public_id)
        return False
    try:
        cloudinary.uploader.destroy(public_id)
    except Exception:
        logger.exception("Cloudinary delete failed public_id=%s", public_id)
        return False
    logger.info("Deleted stored file %s", public_id)
    return True


def stored_file_from_url(url: str):
    """Reference to a file already hosted on Cloudinary (re-submitted forms)."""
    if not isinstance(url, str) or not url.startswith("https://res.cloudinary.com"):
        return None
    public_id = url.rsplit("/", 1)[-1].split(".", 1)[0]
    return StoredFile(secure_url=url, public_id=public_id)
