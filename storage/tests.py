from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from account.models import User
from core.exceptions import ExternalServiceError
from storage.services import delete_file, stored_file_from_url, upload_file

CLOUDINARY = {
    "CLOUDINARY_CLOUD_NAME": "demo",
    "CLOUDINARY_API_KEY": "key",
    "CLOUDINARY_API_SECRET": "secret",
}


class StorageServiceTests(TestCase):
    @override_settings(**CLOUDINARY)
    @patch("storage.services.cloudinary.uploader.upload")
    def test_upload_returns_stored_file(self, upload_mock):
        upload_mock.return_value = {"secure_url": "https://res.cloudinary.com/demo/a.png", "public_id": "coursiers/a"}
        stored = upload_file(SimpleUploadedFile("a.png", b"\x89PNG", content_type="image/png"))
        self.assertEqual(stored.public_id, "coursiers/a")
        self.assertEqual(upload_mock.call_args.kwargs["folder"], "coursiers")

    @override_settings(CLOUDINARY_CLOUD_NAME="")
    def test_upload_without_configuration(self):
        with self.assertRaises(ExternalServiceError):
            upload_file(SimpleUploadedFile("a.png", b"\x89PNG", content_type="image/png"))

    @override_settings(**CLOUDINARY)
    @patch("storage.services.cloudinary.uploader.destroy", side_effect=RuntimeError("network"))
    def test_delete_is_best_effort(self, destroy_mock):
        self.assertFalse(delete_file("coursiers/a"))
        self.assertFalse(delete_file(None))

    def test_reference_from_existing_url(self):
        stored = stored_file_from_url("https://res.cloudinary.com/demo/image/upload/v1/coursiers/doc.pdf")
        self.assertEqual(stored.public_id, "doc")
        self.assertIsNone(stored_file_from_url("https://example.com/doc.pdf"))


class UploadApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="user@example.com", password="Pass123!")
        self.client.force_authenticate(self.user)

    def test_missing_file(self):
        response = self.client.post("/api/upload/", {}, format="multipart")
        self.assertEqual(response.status_code, 400)

    def test_rejects_disallowed_type(self):
        upload = SimpleUploadedFile("a.gif", b"GIF89a", content_type="image/gif")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 400)

    @override_settings(UPLOAD_MAX_BYTES=4)
    def test_rejects_oversized_file(self):
        upload = SimpleUploadedFile("a.pdf", b"%PDF-1.7", content_type="application/pdf")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 400)

    @override_settings(**CLOUDINARY)
    @patch("storage.services.cloudinary.uploader.upload", side_effect=RuntimeError("cloudinary down"))
    def test_provider_failure_is_500(self, upload_mock):
        upload = SimpleUploadedFile("a.png", b"\x89PNG", content_type="image/png")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 500)

    @override_settings(**CLOUDINARY)
    @patch("storage.services.cloudinary.uploader.upload")
    def test_upload_returns_url_and_id(self, upload_mock):
        upload_mock.return_value = {"secure_url": "https://res.cloudinary.com/demo/a.png", "public_id": "coursiers/a"}
        upload = SimpleUploadedFile("a.png", b"\x89PNG", content_type="image/png")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data, {"secure_url": "https://res.cloudinary.com/demo/a.png", "public_id": "coursiers/a"})

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self.client.post("/api/upload/", {}, format="multipart")
        self.assertEqual(response.status_code, 401)
