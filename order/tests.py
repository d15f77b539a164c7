import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

from django.db import OperationalError, close_old_connections, connection
from django.test import TestCase, TransactionTestCase
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from account.models import User
from courier.models import Courier
from feedback.models import Feedback
from notifications.models import Notification
from notifications.push import PushResult
from order.models import Order
from order.serializers import OrderCreateSerializer
from order.services import OrderService


def make_courier(user, **overrides):
    fields = {
        "full_name": "Karim Courier",
        "email": user.email,
        "phone": "33600000000",
        "address": "Paris",
        "experience": "3 years",
        "transport": "scooter",
        "motivation": "Deliveries",
        "availability": True,
        "status": Courier.Status.ACTIVE,
    }
    fields.update(overrides)
    return Courier.objects.create(user=user, **fields)


def order_payload(client, courier, **overrides):
    payload = {
        "client_id": str(client.pk),
        "courier_id": str(courier.pk),
        "pickup_location": {"address": "1 Place de la Gare", "lat": 48.85, "lng": 2.35},
        "delivery_location": {"address": "5 Rue Victor Hugo", "lat": 48.86, "lng": 2.34},
        "package_type": "small",
        "weight": 2,
        "urgency": "standard",
        "scheduled_date": "2026-10-20T10:00:00Z",
        "special_instructions": "",
        "insurance": False,
        "amount": 10.5,
        "distance": 3.2,
        "estimated_time": "15 min",
        "status": "PENDING",
    }
    payload.update(overrides)
    return payload


def ok_provider():
    provider = MagicMock()
    provider.send.return_value = PushResult(PushResult.OK)
    return provider


class OrderCreateTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = User.objects.create_user(email="client@example.com", password="Pass123!", push_token="tok-client")
        self.other = User.objects.create_user(email="other@example.com", password="Pass123!")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="Pass123!", role="admin", push_token="tok-admin"
        )
        self.courier_user = User.objects.create_user(
            email="courier@example.com", password="Pass123!", push_token="tok-courier"
        )
        self.courier = make_courier(self.courier_user)
        self.client.force_authenticate(self.customer)

    def _delivery_count(self):
        return Courier.objects.get(pk=self.courier.pk).delivery_count

    def test_create_order_increments_counter_and_notifies_everyone(self):
        provider = ok_provider()
        with patch("notifications.services.get_push_provider", return_value=provider):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                response = self.client.post(
                    "/api/commandes/create/", order_payload(self.customer, self.courier), format="json"
                )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(len(callbacks), 1)
        order = Order.objects.get(pk=response.data["id"])
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.client_id, self.customer.pk)
        self.assertEqual(str(order.amount), "10.50")
        self.assertEqual(self._delivery_count(), 1)

        self.assertEqual(provider.send.call_count, 3)
        tokens = {call.args[0] for call in provider.send.call_args_list}
        self.assertEqual(tokens, {"tok-client", "tok-courier", "tok-admin"})
        self.assertEqual(Notification.objects.filter(type=Notification.Type.ORDER).count(), 2)
        self.assertEqual(Notification.objects.filter(type=Notification.Type.NEW_ORDER, user=self.admin).count(), 1)

    def test_notifications_wait_for_commit(self):
        provider = ok_provider()
        with patch("notifications.services.get_push_provider", return_value=provider):
            with self.captureOnCommitCallbacks(execute=False):
                response = self.client.post(
                    "/api/commandes/create/", order_payload(self.customer, self.courier), format="json"
                )
        self.assertEqual(response.status_code, 201)
        provider.send.assert_not_called()

    def test_create_order_succeeds_when_every_push_fails(self):
        provider = MagicMock()
        provider.send.side_effect = RuntimeError("push provider down")
        with patch("notifications.services.get_push_provider", return_value=provider):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post(
                    "/api/commandes/create/", order_payload(self.customer, self.courier), format="json"
                )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(Notification.objects.count(), 0)

    def test_cannot_create_order_for_another_client(self):
        response = self.client.post("/api/commandes/create/", order_payload(self.other, self.courier), format="json")
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self._delivery_count(), 0)

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self.client.post("/api/commandes/create/", order_payload(self.customer, self.courier), format="json")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(Order.objects.exists())

    def test_numeric_fields_must_be_numbers(self):
        response = self.client.post(
            "/api/commandes/create/", order_payload(self.customer, self.courier, amount="10.5"), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("amount", response.data)

        response = self.client.post(
            "/api/commandes/create/", order_payload(self.customer, self.courier, weight=True), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("weight", response.data)

    def test_numeric_fields_must_be_positive(self):
        for field in ("amount", "weight", "distance"):
            response = self.client.post(
                "/api/commandes/create/", order_payload(self.customer, self.courier, **{field: 0}), format="json"
            )
            self.assertEqual(response.status_code, 400, field)
            self.assertIn(field, response.data)
        self.assertEqual(self._delivery_count(), 0)

    def test_coordinates_must_be_numeric(self):
        payload = order_payload(
            self.customer,
            self.courier,
            delivery_location={"address": "5 Rue Victor Hugo", "lat": "48.86", "lng": 2.34},
        )
        response = self.client.post("/api/commandes/create/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("lat", response.data["delivery_location"])

    def test_enums_are_closed(self):
        response = self.client.post(
            "/api/commandes/create/", order_payload(self.customer, self.courier, package_type="huge"), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("package_type", response.data)

        response = self.client.post(
            "/api/commandes/create/", order_payload(self.customer, self.courier, urgency="now"), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("urgency", response.data)

    def test_missing_field_is_reported(self):
        payload = order_payload(self.customer, self.courier)
        payload.pop("scheduled_date")
        response = self.client.post("/api/commandes/create/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("scheduled_date", response.data)

    def test_unavailable_courier_is_rejected(self):
        Courier.objects.filter(pk=self.courier.pk).update(availability=False)
        response = self.client.post("/api/commandes/create/", order_payload(self.customer, self.courier), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("courier_id", response.data)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self._delivery_count(), 0)

    def test_unknown_courier_is_rejected(self):
        payload = order_payload(self.customer, self.courier, courier_id=str(self.other.pk))
        response = self.client.post("/api/commandes/create/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Order.objects.exists())

    def test_counter_failure_rolls_back_order(self):
        with patch("order.services.increment_delivery_count", side_effect=RuntimeError("counter update failed")):
            response = self.client.post(
                "/api/commandes/create/", order_payload(self.customer, self.courier), format="json"
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["detail"], "Internal server error")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self._delivery_count(), 0)

    def test_counter_uses_stored_value_not_a_stale_snapshot(self):
        stale = Courier.objects.get(pk=self.courier.pk)
        serializer = OrderCreateSerializer(data=order_payload(self.customer, self.courier))
        serializer.is_valid(raise_exception=True)
        OrderService.create_order(self.customer, serializer.validated_data)
        OrderService.create_order(self.customer, serializer.validated_data)
        self.assertEqual(stale.delivery_count, 0)
        self.assertEqual(self._delivery_count(), 2)


class OrderLifecycleTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = User.objects.create_user(email="client@example.com", password="Pass123!", push_token="tok-client")
        self.admin = User.objects.create_user(email="admin@example.com", password="Pass123!", role="admin")
        self.courier_user = User.objects.create_user(email="courier@example.com", password="Pass123!")
        self.courier = make_courier(self.courier_user)
        self.order = self._create_order()

    def _create_order(self, **overrides):
        fields = {
            "client": self.customer,
            "courier": self.courier,
            "pickup_address": "1 Place de la Gare",
            "pickup_lat": 48.85,
            "pickup_lng": 2.35,
            "delivery_address": "5 Rue Victor Hugo",
            "delivery_lat": 48.86,
            "delivery_lng": 2.34,
            "package_type": "small",
            "weight": 2,
            "urgency": "standard",
            "scheduled_date": "2026-10-20T10:00:00Z",
            "amount": "10.50",
            "distance": 3.2,
        }
        fields.update(overrides)
        return Order.objects.create(**fields)

    def test_status_update_notifies_client(self):
        provider = ok_provider()
        self.client.force_authenticate(self.admin)
        with patch("notifications.services.get_push_provider", return_value=provider):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.patch(
                    f"/api/commandes/{self.order.id}/", {"status": "IN_PROGRESS"}, format="json"
                )
        self.assertEqual(response.status_code, 200, response.data)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.IN_PROGRESS)
        provider.send.assert_called_once()
        note = Notification.objects.get(user=self.customer)
        self.assertEqual(note.type, Notification.Type.ORDER_UPDATE)
        self.assertEqual(note.payload, {"orderId": str(self.order.id)})

    def test_status_update_rejects_unknown_status(self):
        self.client.force_authenticate(self.customer)
        response = self.client.patch(f"/api/commandes/{self.order.id}/", {"status": "LOST"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PENDING)

    def test_status_update_on_missing_order(self):
        self.client.force_authenticate(self.customer)
        response = self.client.patch(
            "/api/commandes/00000000-0000-0000-0000-000000000000/", {"status": "DELIVERED"}, format="json"
        )
        self.assertEqual(response.status_code, 404)

    def test_any_status_can_follow_any_other(self):
        self.client.force_authenticate(self.customer)
        for new_status in ("DELIVERED", "PENDING", "CANCELLED", "IN_PROGRESS"):
            response = self.client.patch(f"/api/commandes/{self.order.id}/", {"status": new_status}, format="json")
            self.assertEqual(response.status_code, 200, new_status)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.IN_PROGRESS)

    def test_delete_order(self):
        self.client.force_authenticate(self.customer)
        response = self.client.delete(f"/api/commandes/{self.order.id}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Order.objects.filter(pk=self.order.id).exists())

        response = self.client.delete(f"/api/commandes/{self.order.id}/")
        self.assertEqual(response.status_code, 404)

    def test_single_order_read_is_idempotent(self):
        self.client.force_authenticate(self.customer)
        first = self.client.get(f"/api/commandes/{self.order.id}/")
        second = self.client.get(f"/api/commandes/{self.order.id}/")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data, second.data)
        self.assertEqual(first.data["pickup_location"]["lat"], 48.85)

    def test_admin_list_is_paginated(self):
        self._create_order()
        self._create_order()
        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/commandes/", {"page": 1, "limit": 2})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["data"]), 2)
        self.assertEqual(response.data["pagination"], {"page": 1, "limit": 2, "total": 3, "pages": 2})

    def test_admin_list_requires_administrator(self):
        self.client.force_authenticate(self.customer)
        response = self.client.get("/api/commandes/")
        self.assertEqual(response.status_code, 403)

    def test_user_orders_only_returns_callers_orders(self):
        other = User.objects.create_user(email="other@example.com", password="Pass123!")
        self._create_order(client=other)
        self.client.force_authenticate(self.customer)
        response = self.client.get("/api/commandes/user/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["id"] for row in response.data], [str(self.order.id)])

    def test_client_history_formats_amount(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get(f"/api/clients/{self.customer.pk}/orders/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["amount"], "10.50 €")
        self.assertEqual(response.data[0]["status"], "PENDING")

    def test_client_history_unknown_client(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/clients/00000000-0000-0000-0000-000000000000/orders/")
        self.assertEqual(response.status_code, 404)


class DeliveryScenarioTests(TestCase):
    def test_order_through_feedback_to_deletion(self):
        api = APIClient()
        customer = User.objects.create_user(email="c@example.com", password="Pass123!", push_token="tok-c")
        admin = User.objects.create_user(email="a@example.com", password="Pass123!", role="admin", push_token="tok-a")
        courier_user = User.objects.create_user(email="k@example.com", password="Pass123!", push_token="tok-k")
        courier = make_courier(courier_user)
        provider = ok_provider()

        with patch("notifications.services.get_push_provider", return_value=provider):
            api.force_authenticate(customer)
            with self.captureOnCommitCallbacks(execute=True):
                response = api.post("/api/commandes/create/", order_payload(customer, courier), format="json")
            self.assertEqual(response.status_code, 201, response.data)
            order_id = response.data["id"]
            courier.refresh_from_db()
            self.assertEqual(courier.delivery_count, 1)
            self.assertEqual(provider.send.call_count, 3)

            api.force_authenticate(admin)
            with self.captureOnCommitCallbacks(execute=True):
                response = api.patch(f"/api/commandes/{order_id}/", {"status": "DELIVERED"}, format="json")
            self.assertEqual(response.status_code, 200)

        api.force_authenticate(customer)
        response = api.post(
            "/api/feedback/submit/",
            {"order_id": order_id, "courier_id": str(courier.pk), "rating": 4},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        courier.refresh_from_db()
        self.assertAlmostEqual(courier.rating, 4.0)

        response = api.delete(f"/api/commandes/{order_id}/")
        self.assertEqual(response.status_code, 200)
        courier.refresh_from_db()
        self.assertFalse(Order.objects.filter(pk=order_id).exists())
        self.assertEqual(courier.delivery_count, 1)
        self.assertAlmostEqual(courier.rating, 4.0)
        self.assertEqual(Feedback.objects.filter(courier=courier).count(), 1)


class ConcurrentOrderCreationTests(TransactionTestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@example.com", password="Pass123!")
        self.courier = make_courier(User.objects.create_user(email="courier@example.com", password="Pass123!"))

    def _create(self, data):
        try:
            for _ in range(50):
                try:
                    return OrderService.create_order(self.customer, data)
                except OperationalError:
                    # SQLite reports a locked table instead of waiting for the writer.
                    time.sleep(0.02)
            raise AssertionError("order creation kept failing on a locked database")
        finally:
            close_old_connections()

    def test_parallel_creations_count_every_order(self):
        serializer = OrderCreateSerializer(data=order_payload(self.customer, self.courier))
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with ThreadPoolExecutor(max_workers=4) as executor:
            orders = list(executor.map(lambda _: self._create(data), range(8)))

        self.assertEqual(len({order.id for order in orders}), 8)
        self.assertEqual(Order.objects.count(), 8)
        self.assertEqual(Courier.objects.get(pk=self.courier.pk).delivery_count, 8)

    def test_courier_is_locked_inside_the_creation_transaction(self):
        serializer = OrderCreateSerializer(data=order_payload(self.customer, self.courier))
        serializer.is_valid(raise_exception=True)

        select_for_update = Courier.objects.select_for_update
        in_transaction = []

        def locking_select(*args, **kwargs):
            in_transaction.append(connection.in_atomic_block)
            return select_for_update(*args, **kwargs)

        with patch.object(Courier.objects, "select_for_update", side_effect=locking_select):
            OrderService.create_order(self.customer, serializer.validated_data)

        self.assertEqual(in_transaction, [True])
        self.assertEqual(Courier.objects.get(pk=self.courier.pk).delivery_count, 1)

    def test_courier_made_unavailable_before_lock_is_rejected(self):
        serializer = OrderCreateSerializer(data=order_payload(self.customer, self.courier))
        serializer.is_valid(raise_exception=True)
        Courier.objects.filter(pk=self.courier.pk).update(availability=False)

        with self.assertRaises(ValidationError) as ctx:
            OrderService.create_order(self.customer, serializer.validated_data)

        self.assertIn("courier_id", ctx.exception.detail)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(Courier.objects.get(pk=self.courier.pk).delivery_count, 0)
