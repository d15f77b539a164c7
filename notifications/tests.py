import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import MagicMock, patch

import firebase_admin
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from account.models import User
from core.firebase import init_firebase
from .models import Notification
from .push import FirebasePushProvider, PushResult
from .services import (
    NO_ADMINISTRATORS,
    NO_PUSH_TOKEN,
    TOKEN_RESET,
    USER_NOT_FOUND,
    NotificationService,
    OutboundNotification,
)


def provider_returning(*results):
    provider = MagicMock()
    provider.send.side_effect = list(results)
    return provider


class NotificationDispatcherTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="user@example.com", password="Pass123!", push_token="tok-user-123456")

    def test_unknown_user(self):
        result = NotificationService.send(uuid.uuid4(), "Hello", "World")
        self.assertFalse(result.delivered)
        self.assertEqual(result.reason, USER_NOT_FOUND)
        self.assertEqual(Notification.objects.count(), 0)

    def test_user_without_push_token_leaves_log_unchanged(self):
        User.objects.filter(pk=self.user.pk).update(push_token=None)
        with patch("notifications.services.get_push_provider") as factory:
            result = NotificationService.send(self.user.pk, "Hello", "World")
        self.assertFalse(result.delivered)
        self.assertEqual(result.reason, NO_PUSH_TOKEN)
        self.assertEqual(Notification.objects.count(), 0)
        factory.assert_not_called()

    def test_delivered_push_is_logged(self):
        provider = provider_returning(PushResult(PushResult.OK))
        with patch("notifications.services.get_push_provider", return_value=provider):
            result = NotificationService.send(
                self.user.pk, "Order", "On its way", Notification.Type.ORDER, {"orderId": 42}
            )
        self.assertTrue(result.delivered)
        note = Notification.objects.get()
        self.assertEqual(note.user_id, self.user.pk)
        self.assertEqual(note.type, Notification.Type.ORDER)
        self.assertFalse(note.is_read)
        self.assertEqual(note.payload, {"orderId": 42})
        provider.send.assert_called_once_with("tok-user-123456", "Order", "On its way", {"orderId": "42"})

    def test_invalid_token_is_cleared(self):
        provider = provider_returning(PushResult(PushResult.TOKEN_INVALID, "Requested entity was not found."))
        with patch("notifications.services.get_push_provider", return_value=provider):
            result = NotificationService.send(self.user.pk, "Hello", "World")
        self.assertFalse(result.delivered)
        self.assertEqual(result.reason, TOKEN_RESET)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.push_token)
        self.assertEqual(Notification.objects.count(), 0)

    def test_provider_error_is_reported(self):
        provider = provider_returning(PushResult(PushResult.ERROR, "quota exceeded"))
        with patch("notifications.services.get_push_provider", return_value=provider):
            result = NotificationService.send(self.user.pk, "Hello", "World")
        self.assertFalse(result.delivered)
        self.assertEqual(result.reason, "quota exceeded")
        self.user.refresh_from_db()
        self.assertEqual(self.user.push_token, "tok-user-123456")
        self.assertEqual(Notification.objects.count(), 0)

    def test_provider_exception_is_captured(self):
        provider = MagicMock()
        provider.send.side_effect = RuntimeError("socket closed")
        with patch("notifications.services.get_push_provider", return_value=provider):
            result = NotificationService.send(self.user.pk, "Hello", "World")
        self.assertFalse(result.delivered)
        self.assertEqual(result.reason, "socket closed")

    def test_send_many_keeps_results_in_order(self):
        other = User.objects.create_user(email="other@example.com", password="Pass123!", push_token="tok-other")
        provider = MagicMock()
        provider.send.side_effect = lambda token, *args: (
            PushResult(PushResult.OK) if token == "tok-other" else PushResult(PushResult.ERROR, "boom")
        )
        messages = [
            OutboundNotification(self.user.pk, "A", "a"),
            OutboundNotification(uuid.uuid4(), "B", "b"),
            OutboundNotification(other.pk, "C", "c"),
        ]
        with patch("notifications.services.get_push_provider", return_value=provider):
            results = NotificationService.send_many(messages)
        self.assertEqual([r.delivered for r in results], [False, False, True])
        self.assertEqual(results[1].reason, USER_NOT_FOUND)
        self.assertEqual(list(Notification.objects.values_list("user_id", flat=True)), [other.pk])


def slow_initialize_app(credential, options=None):
    time.sleep(0.05)
    if "[DEFAULT]" in firebase_admin._apps:
        raise ValueError("The default Firebase app already exists.")
    firebase_admin._apps["[DEFAULT]"] = MagicMock()


@override_settings(
    FCM_SERVICE_ACCOUNT_JSON='{"type": "service_account"}',
    PUSH_PROVIDER="notifications.push.FirebasePushProvider",
)
class FirebaseInitialisationTests(TestCase):
    def setUp(self):
        for p in (
            patch.dict(firebase_admin._apps, clear=True),
            patch("core.firebase._initialized", False),
            patch("firebase_admin.credentials.Certificate"),
        ):
            p.start()
            self.addCleanup(p.stop)
        init_patch = patch("firebase_admin.initialize_app", side_effect=slow_initialize_app)
        self.initialize_app = init_patch.start()
        self.addCleanup(init_patch.stop)

    def test_parallel_callers_share_one_app(self):
        with ThreadPoolExecutor(max_workers=6) as executor:
            results = list(executor.map(lambda _: init_firebase(), range(6)))
        self.assertEqual(results, [True] * 6)
        self.assertEqual(self.initialize_app.call_count, 1)

    def test_first_fan_out_delivers_to_every_recipient(self):
        users = [
            User.objects.create_user(email=f"u{i}@example.com", password="Pass123!", push_token=f"tok-{i}")
            for i in range(6)
        ]
        messages = [OutboundNotification(user.pk, "Order", "On its way", Notification.Type.ORDER) for user in users]
        with patch("firebase_admin.messaging.send", return_value="projects/demo/messages/1"):
            results = NotificationService.send_many(messages)

        self.assertEqual([r.delivered for r in results], [True] * 6)
        self.assertEqual(Notification.objects.count(), 6)
        self.assertEqual(self.initialize_app.call_count, 1)

    def test_provider_initialises_on_construction(self):
        FirebasePushProvider()
        self.assertEqual(self.initialize_app.call_count, 1)


class AdminFanOutTests(TestCase):
    def test_no_administrators(self):
        result = NotificationService.broadcast_to_admins("New", "Something happened")
        self.assertFalse(result.success)
        self.assertEqual(result.reason, NO_ADMINISTRATORS)
        self.assertEqual(result.notified, 0)

    def test_counts_successful_deliveries(self):
        User.objects.create_user(email="a1@example.com", password="Pass123!", role="admin", push_token="tok-a1")
        User.objects.create_user(email="a2@example.com", password="Pass123!", role="admin", push_token="tok-a2")
        User.objects.create_user(email="a3@example.com", password="Pass123!", role="admin")
        User.objects.create_user(email="client@example.com", password="Pass123!", push_token="tok-client")

        provider = MagicMock()
        provider.send.return_value = PushResult(PushResult.OK)
        with patch("notifications.services.get_push_provider", return_value=provider):
            result = NotificationService.broadcast_to_admins(
                "New courier", "An application arrived", Notification.Type.NEW_COURIER
            )
        self.assertTrue(result.success)
        self.assertEqual(result.notified, 2)
        self.assertEqual(provider.send.call_count, 2)
        self.assertEqual(Notification.objects.filter(type=Notification.Type.NEW_COURIER).count(), 2)


class NotificationsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="user@example.com", password="Pass123!")
        self.other = User.objects.create_user(email="other@example.com", password="Pass123!")
        self.admin = User.objects.create_user(email="admin@example.com", password="Pass123!", role="admin")
        self.client.force_authenticate(self.user)

    def test_register_and_clear_push_token(self):
        response = self.client.post("/api/notifications/register/", {"token": "device-1"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.user.refresh_from_db()
        self.assertEqual(self.user.push_token, "device-1")

        response = self.client.post("/api/notifications/register/", {"token": None}, format="json")
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.push_token)

    def test_register_for_another_user_is_forbidden(self):
        response = self.client.post(
            "/api/notifications/register/",
            {"token": "device-1", "user_id": str(self.other.pk)},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
        self.other.refresh_from_db()
        self.assertIsNone(self.other.push_token)

    def test_list_returns_only_callers_notifications(self):
        Notification.objects.create(user=self.user, title="Mine", message="m")
        Notification.objects.create(user=self.other, title="Theirs", message="t")
        response = self.client.get("/api/notifications/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual([row["title"] for row in response.data["results"]], ["Mine"])

    def test_list_is_paginated_newest_first(self):
        base = timezone.now()
        for i in range(3):
            note = Notification.objects.create(user=self.user, title=f"N{i}", message="m")
            Notification.objects.filter(pk=note.pk).update(created_at=base + timedelta(minutes=i))
        response = self.client.get("/api/notifications/", {"page_size": 2})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 3)
        self.assertEqual([row["title"] for row in response.data["results"]], ["N2", "N1"])
        self.assertIsNotNone(response.data["next"])

    def test_mark_read_only_touches_callers_notifications(self):
        mine = Notification.objects.create(user=self.user, title="Mine", message="m")
        theirs = Notification.objects.create(user=self.other, title="Theirs", message="t")
        response = self.client.post(
            "/api/notifications/mark-read/",
            {"notification_ids": [str(mine.id), str(theirs.id)]},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["updated"], 1)
        mine.refresh_from_db()
        theirs.refresh_from_db()
        self.assertTrue(mine.is_read)
        self.assertFalse(theirs.is_read)

    def test_mark_read_requires_ids(self):
        response = self.client.post("/api/notifications/mark-read/", {"notification_ids": []}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_send_requires_administrator(self):
        response = self.client.post(
            "/api/notifications/send/",
            {"user_id": str(self.other.pk), "title": "Hi", "message": "Hello"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_send_validates_charset_and_length(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            "/api/notifications/send/",
            {"user_id": str(self.other.pk), "title": "<script>", "message": "x" * 501},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("title", response.data)
        self.assertIn("message", response.data)

    def test_send_without_token_reports_reason(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            "/api/notifications/send/",
            {"user_id": str(self.other.pk), "title": "Hi", "message": "Hello there"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], NO_PUSH_TOKEN)

    def test_send_delivers_admin_message(self):
        User.objects.filter(pk=self.other.pk).update(push_token="tok-other")
        provider = MagicMock()
        provider.send.return_value = PushResult(PushResult.OK)
        self.client.force_authenticate(self.admin)
        with patch("notifications.services.get_push_provider", return_value=provider):
            response = self.client.post(
                "/api/notifications/send/",
                {"user_id": str(self.other.pk), "title": "Hi", "message": "Your parcel is ready."},
                format="json",
            )
        self.assertEqual(response.status_code, 200, response.data)
        note = Notification.objects.get(user=self.other)
        self.assertEqual(note.type, Notification.Type.ADMIN_MESSAGE)
