from django.test import TestCase
from rest_framework.test import APIClient

from account.models import User
from marketing.models import ContactMessage, NewsletterSubscriber


class MarketingCaptureTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_newsletter_subscription(self):
        response = self.client.post("/api/newsletter/subscribe/", {"email": "Fan@Example.com"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(NewsletterSubscriber.objects.filter(email="fan@example.com").exists())

    def test_newsletter_duplicate_is_conflict(self):
        NewsletterSubscriber.objects.create(email="fan@example.com")
        response = self.client.post("/api/newsletter/subscribe/", {"email": "fan@example.com"}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(NewsletterSubscriber.objects.count(), 1)

    def test_newsletter_rejects_invalid_email(self):
        response = self.client.post("/api/newsletter/subscribe/", {"email": "fan"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_contact_message_is_trimmed_and_anonymous_by_default(self):
        response = self.client.post(
            "/api/contact/submit/",
            {"name": "  Kofi  ", "email": "kofi@example.com", "message": "  Hello there  "},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        message = ContactMessage.objects.get()
        self.assertEqual(message.name, "Kofi")
        self.assertEqual(message.message, "Hello there")
        self.assertEqual(message.user_id, ContactMessage.ANONYMOUS)

    def test_contact_message_length_limits(self):
        response = self.client.post(
            "/api/contact/submit/",
            {"name": "x" * 101, "email": "kofi@example.com", "message": "y" * 1001},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.data)
        self.assertIn("message", response.data)

    def test_messages_list_is_admin_only(self):
        ContactMessage.objects.create(name="Kofi", email="kofi@example.com", message="Hi")
        user = User.objects.create_user(email="client@example.com", password="Pass123!")
        admin = User.objects.create_user(email="admin@example.com", password="Pass123!", role="admin")

        self.assertEqual(self.client.get("/api/messages/").status_code, 401)
        self.client.force_authenticate(user)
        self.assertEqual(self.client.get("/api/messages/").status_code, 403)
        self.client.force_authenticate(admin)
        response = self.client.get("/api/messages/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["name"], "Kofi")
