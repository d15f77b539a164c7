from unittest.mock import patch

from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.cache import cache
from django.test import TestCase
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIClient
from rest_framework.throttling import ScopedRateThrottle

from account.models import User
from notifications.models import Notification
from notifications.push import PushResult


class SignupTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def _payload(self, **overrides):
        payload = {
            "first_name": "Awa",
            "last_name": "Diallo",
            "email": "Awa@Example.com",
            "phone": "+22997000000",
            "address": "Cotonou",
            "password": "secret1",
        }
        payload.update(overrides)
        return payload

    def test_signup_creates_unverified_client_and_sends_email(self):
        response = self.client.post("/api/auth/signup/", self._payload(), format="json")
        self.assertEqual(response.status_code, 201, response.data)
        user = User.objects.get(pk=response.data["user_id"])
        self.assertEqual(user.email, "awa@example.com")
        self.assertEqual(user.phone_number, "22997000000")
        self.assertEqual(user.role, User.Role.CLIENT)
        self.assertFalse(user.email_verified)
        self.assertTrue(user.check_password("secret1"))
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("/verify-email/", mail.outbox[0].body)

    def test_signup_duplicate_email_is_conflict(self):
        User.objects.create_user(email="awa@example.com", password="secret1")
        response = self.client.post("/api/auth/signup/", self._payload(), format="json")
        self.assertEqual(response.status_code, 409)

    def test_signup_validates_formats(self):
        cases = {
            "email": "not-an-email",
            "phone": "0123",
            "password": "short",
        }
        for field, value in cases.items():
            response = self.client.post("/api/auth/signup/", self._payload(**{field: value}), format="json")
            self.assertEqual(response.status_code, 400, field)
            self.assertIn(field, response.data)
        self.assertFalse(User.objects.exists())

    def test_signup_requires_every_field(self):
        payload = self._payload()
        payload.pop("address")
        response = self.client.post("/api/auth/signup/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("address", response.data)

    @patch("account.services.send_mail", side_effect=OSError("smtp down"))
    def test_signup_succeeds_when_email_fails(self, send_mail_mock):
        response = self.client.post("/api/auth/signup/", self._payload(), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.data["verification_email_sent"])


class EmailVerificationTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="awa@example.com", password="secret1")

    def test_verify_email_link(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        token = default_token_generator.make_token(self.user)
        response = self.client.get(f"/api/auth/verify-email/{uid}/{token}/")
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.email_verified)

        response = self.client.get(f"/api/auth/check-email-verified/{self.user.pk}/")
        self.assertEqual(response.data, {"email_verified": True})

    def test_verify_email_rejects_bad_token(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        response = self.client.get(f"/api/auth/verify-email/{uid}/bad-token/")
        self.assertEqual(response.status_code, 400)
        self.user.refresh_from_db()
        self.assertFalse(self.user.email_verified)

    def test_check_email_verified_unknown_user(self):
        response = self.client.get("/api/auth/check-email-verified/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)

    def test_resend_verification_email(self):
        response = self.client.post("/api/auth/send-verification-email/", {"email": "awa@example.com"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(mail.outbox), 1)

        response = self.client.post("/api/auth/send-verification-email/", {"email": "nobody@example.com"}, format="json")
        self.assertEqual(response.status_code, 404)

        User.objects.filter(pk=self.user.pk).update(email_verified=True)
        response = self.client.post("/api/auth/send-verification-email/", {"email": "awa@example.com"}, format="json")
        self.assertEqual(response.status_code, 400)


class SigninTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(email="awa@example.com", password="secret1", email_verified=True)

    def test_signin_returns_tokens_and_stores_push_token(self):
        response = self.client.post(
            "/api/auth/signin/",
            {"email": "awa@example.com", "password": "secret1", "push_token": "device-token"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertIn("access", response.data["tokens"])
        self.assertIn("refresh", response.data["tokens"])
        self.user.refresh_from_db()
        self.assertEqual(self.user.push_token, "device-token")
        self.assertIsNotNone(self.user.last_login)

    def test_signin_access_token_authenticates(self):
        response = self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json")
        access = response.data["tokens"]["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["email"], "awa@example.com")

    def test_refresh_token(self):
        response = self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json")
        response = self.client.post("/api/auth/refresh/", {"refresh": response.data["tokens"]["refresh"]}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.data)

    def test_signin_sends_login_notification(self):
        User.objects.filter(pk=self.user.pk).update(push_token="device-token")
        with patch("notifications.services.get_push_provider") as provider_factory:
            provider_factory.return_value.send.return_value = PushResult(PushResult.OK)
            response = self.client.post(
                "/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json"
            )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(Notification.objects.filter(user=self.user, type=Notification.Type.LOGIN).exists())

    def test_signin_wrong_password(self):
        response = self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "nope12"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_signin_unknown_user(self):
        response = self.client.post("/api/auth/signin/", {"email": "who@example.com", "password": "secret1"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_signin_requires_verified_email(self):
        User.objects.filter(pk=self.user.pk).update(email_verified=False)
        response = self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_signin_disabled_account(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        response = self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_signin_is_rate_limited(self):
        with patch.object(ScopedRateThrottle, "THROTTLE_RATES", {"signin": "2/min"}):
            for _ in range(2):
                self.client.post("/api/auth/signin/", {"email": "awa@example.com", "password": "bad123"}, format="json")
            response = self.client.post(
                "/api/auth/signin/", {"email": "awa@example.com", "password": "secret1"}, format="json"
            )
        self.assertEqual(response.status_code, 429)

    @patch("account.services.verify_google_token")
    def test_google_signin_creates_verified_client(self, verify_mock):
        verify_mock.return_value = {"email": "ama@gmail.com", "name": "Ama Mensah", "picture": "https://img/ama.png"}
        response = self.client.post("/api/auth/signin-google/", {"id_token": "google-token"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        user = User.objects.get(email="ama@gmail.com")
        self.assertEqual(user.provider, User.Provider.GOOGLE)
        self.assertEqual(user.role, User.Role.CLIENT)
        self.assertTrue(user.email_verified)
        self.assertEqual(user.first_name, "Ama")
        self.assertFalse(user.has_usable_password())

    @patch("account.services.verify_google_token")
    def test_google_signin_reuses_existing_account(self, verify_mock):
        verify_mock.return_value = {"email": "awa@example.com"}
        response = self.client.post("/api/auth/signin-google/", {"id_token": "google-token"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(User.objects.filter(email="awa@example.com").count(), 1)

    @patch("account.services.verify_google_token", side_effect=AuthenticationFailed("Google token verification failed."))
    def test_google_signin_rejects_bad_token(self, verify_mock):
        response = self.client.post("/api/auth/signin-google/", {"id_token": "forged"}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(User.objects.filter(provider=User.Provider.GOOGLE).exists())


class UserProfileTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="awa@example.com", password="secret1", first_name="Awa")
        self.admin = User.objects.create_user(email="admin@example.com", password="secret1", role="admin")

    def test_me_requires_authentication(self):
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, 401)

    def test_update_preferences(self):
        self.client.force_authenticate(self.user)
        response = self.client.patch(
            "/api/users/preferences/",
            {"primary_color": "#112233", "dashboard_layout": ["orders", "stats"]},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.user.refresh_from_db()
        self.assertEqual(self.user.primary_color, "#112233")
        self.assertEqual(self.user.dashboard_layout, ["orders", "stats"])

    def test_preferences_validation(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.patch("/api/users/preferences/", {}, format="json").status_code, 400)
        self.assertEqual(
            self.client.patch("/api/users/preferences/", {"primary_color": "blue"}, format="json").status_code, 400
        )
        self.assertEqual(
            self.client.patch("/api/users/preferences/", {"dashboard_layout": []}, format="json").status_code, 400
        )
        self.assertEqual(
            self.client.patch("/api/users/preferences/", {"dashboard_layout": ["weather"]}, format="json").status_code,
            400,
        )

    def test_clients_list_is_admin_only(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get("/api/clients/").status_code, 403)

        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/clients/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["email"] for row in response.data], ["awa@example.com"])
        self.assertEqual(response.data[0]["name"], "Awa")

    def test_demoted_admin_loses_access_immediately(self):
        self.client.force_authenticate(self.admin)
        User.objects.filter(pk=self.admin.pk).update(role=User.Role.CLIENT)
        self.assertEqual(self.client.get("/api/clients/").status_code, 403)
