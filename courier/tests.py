from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from account.models import User
from courier.models import Courier, CourierApplication
from courier.services import increment_delivery_count
from storage.services import StoredFile


def application_payload(**overrides):
    payload = {
        "full_name": "Lucas Martin",
        "email": "lucas@example.com",
        "phone": "33612345678",
        "address": "12 rue de Lyon, Paris",
        "experience": "2 years",
        "transport": "bike",
        "availability": "true",
        "motivation": "I like cycling.",
    }
    payload.update(overrides)
    return payload


class CourierRecordTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin_courier@example.com", password="Pass123!", role="admin")
        self.applicant = User.objects.create_user(email="applicant@example.com", password="Pass123!")

    def test_submit_application_keyed_by_caller(self):
        self.client.force_authenticate(self.applicant)
        response = self.client.post("/api/coursiers/createCourier/", application_payload(), format="multipart")
        self.assertEqual(response.status_code, 201, response.data)
        record = CourierApplication.objects.get(pk=self.applicant.pk)
        self.assertEqual(record.full_name, "Lucas Martin")
        self.assertTrue(record.availability)
        self.assertIsNone(record.id_document)

    def test_submit_application_requires_all_fields(self):
        self.client.force_authenticate(self.applicant)
        payload = application_payload()
        payload.pop("motivation")
        response = self.client.post("/api/coursiers/createCourier/", payload, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertIn("motivation", response.data)
        self.assertFalse(CourierApplication.objects.exists())

    @patch("courier.services.upload_file")
    def test_submit_application_uploads_documents(self, upload_mock):
        upload_mock.return_value = StoredFile("https://res.cloudinary.com/demo/id.png", "coursiers/id")
        self.client.force_authenticate(self.applicant)
        payload = application_payload(
            id_document=SimpleUploadedFile("id.png", b"\x89PNG", content_type="image/png"),
        )
        response = self.client.post("/api/coursiers/createCourier/", payload, format="multipart")
        self.assertEqual(response.status_code, 201, response.data)
        record = CourierApplication.objects.get(pk=self.applicant.pk)
        self.assertEqual(record.id_document["public_id"], "coursiers/id")
        upload_mock.assert_called_once()

    def test_submit_application_rejects_unsupported_file_type(self):
        self.client.force_authenticate(self.applicant)
        payload = application_payload(
            id_document=SimpleUploadedFile("id.exe", b"MZ", content_type="application/x-msdownload"),
        )
        response = self.client.post("/api/coursiers/createCourier/", payload, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertIn("id_document", response.data)

    def test_submit_application_accepts_existing_storage_url(self):
        self.client.force_authenticate(self.applicant)
        payload = application_payload(profile_picture="https://res.cloudinary.com/demo/image/upload/v1/coursiers/me.jpg")
        response = self.client.post("/api/coursiers/createCourier/", payload, format="multipart")
        self.assertEqual(response.status_code, 201, response.data)
        record = CourierApplication.objects.get(pk=self.applicant.pk)
        self.assertEqual(record.profile_picture["public_id"], "me")

    def test_list_requires_administrator(self):
        self.client.force_authenticate(self.applicant)
        response = self.client.get("/api/coursiers/")
        self.assertEqual(response.status_code, 403)

    def test_list_requires_authentication(self):
        response = self.client.get("/api/truecoursiers/")
        self.assertEqual(response.status_code, 401)

    def test_approve_moves_application_to_active_couriers(self):
        CourierApplication.objects.create(user=self.applicant, **self._record_fields())
        self.client.force_authenticate(self.admin)
        response = self.client.post(f"/api/coursiers/{self.applicant.pk}/approve/")
        self.assertEqual(response.status_code, 200, response.data)

        courier = Courier.objects.get(pk=self.applicant.pk)
        self.assertEqual(courier.delivery_count, 0)
        self.assertEqual(courier.status, Courier.Status.ACTIVE)
        self.assertEqual(courier.rating, 4.8)
        self.assertFalse(CourierApplication.objects.filter(pk=self.applicant.pk).exists())

    def test_approve_missing_application_returns_404(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(f"/api/coursiers/{self.applicant.pk}/approve/")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Courier.objects.exists())

    @patch("courier.services.delete_file")
    def test_delete_removes_stored_files_then_record(self, delete_mock):
        Courier.objects.create(
            user=self.applicant,
            driving_license={"secure_url": "https://res.cloudinary.com/x.pdf", "public_id": "coursiers/x"},
            **self._record_fields(),
        )
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/api/truecoursiers/{self.applicant.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Courier.objects.exists())
        delete_mock.assert_any_call("coursiers/x")

    @patch("courier.services.delete_file", return_value=False)
    def test_delete_succeeds_when_file_cleanup_fails(self, delete_mock):
        CourierApplication.objects.create(
            user=self.applicant,
            id_document={"secure_url": "https://res.cloudinary.com/x.png", "public_id": "coursiers/id"},
            **self._record_fields(),
        )
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/api/coursiers/{self.applicant.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(CourierApplication.objects.exists())

    @patch("courier.services.delete_file")
    @patch("courier.services.upload_file")
    def test_patch_replaces_file_and_fields(self, upload_mock, delete_mock):
        upload_mock.return_value = StoredFile("https://res.cloudinary.com/new.png", "coursiers/new")
        Courier.objects.create(
            user=self.applicant,
            profile_picture={"secure_url": "https://res.cloudinary.com/old.png", "public_id": "coursiers/old"},
            **self._record_fields(),
        )
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            f"/api/truecoursiers/{self.applicant.pk}/",
            {
                "transport": "scooter",
                "status": "ACTIVE",
                "profile_picture": SimpleUploadedFile("new.png", b"\x89PNG", content_type="image/png"),
            },
            format="multipart",
        )
        self.assertEqual(response.status_code, 200, response.data)
        courier = Courier.objects.get(pk=self.applicant.pk)
        self.assertEqual(courier.transport, "scooter")
        self.assertEqual(courier.status, "ACTIVE")
        self.assertEqual(courier.profile_picture["public_id"], "coursiers/new")
        delete_mock.assert_called_once_with("coursiers/old")

    def test_available_couriers_is_public_and_lists_active_only(self):
        Courier.objects.create(user=self.applicant, status=Courier.Status.ACTIVE, **self._record_fields())
        other = User.objects.create_user(email="idle@example.com", password="Pass123!")
        Courier.objects.create(user=other, **self._record_fields(full_name="Idle Courier"))

        response = self.client.get("/api/truecoursiers/available/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        entry = response.data[0]
        self.assertEqual(entry["id"], str(self.applicant.pk))
        self.assertEqual(entry["rating"], 4.8)
        self.assertEqual(entry["delivery_count"], 0)
        self.assertIsNone(entry["photo_url"])

    def test_public_profile_requires_authentication(self):
        Courier.objects.create(user=self.applicant, status=Courier.Status.ACTIVE, **self._record_fields())
        response = self.client.get(f"/api/truecoursiers/{self.applicant.pk}/public/")
        self.assertEqual(response.status_code, 401)

        self.client.force_authenticate(self.admin)
        response = self.client.get(f"/api/truecoursiers/{self.applicant.pk}/public/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["full_name"], "Lucas Martin")

    def test_increment_delivery_count(self):
        Courier.objects.create(user=self.applicant, **self._record_fields())
        increment_delivery_count(self.applicant.pk)
        increment_delivery_count(self.applicant.pk)
        self.assertEqual(Courier.objects.get(pk=self.applicant.pk).delivery_count, 2)

    @staticmethod
    def _record_fields(**overrides):
        fields = {
            "full_name": "Lucas Martin",
            "email": "lucas@example.com",
            "phone": "33612345678",
            "address": "12 rue de Lyon, Paris",
            "experience": "2 years",
            "transport": "bike",
            "motivation": "I like cycling.",
        }
        fields.update(overrides)
        return fields
