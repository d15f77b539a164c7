import time
from concurrent.futures import ThreadPoolExecutor

from django.db import OperationalError, close_old_connections
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient

from account.models import User
from courier.models import Courier
from feedback.models import Feedback
from feedback.services import FeedbackService
from order.models import Order


def make_order(client, courier, status):
    return Order.objects.create(
        client=client,
        courier=courier,
        pickup_address="A",
        pickup_lat=48.85,
        pickup_lng=2.35,
        delivery_address="B",
        delivery_lat=48.86,
        delivery_lng=2.34,
        package_type="small",
        weight=2,
        urgency="standard",
        scheduled_date="2026-10-20T10:00:00Z",
        amount="10.50",
        distance=3.2,
        status=status,
    )


class FeedbackSubmitTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = User.objects.create_user(email="client@example.com", password="Pass123!")
        self.stranger = User.objects.create_user(email="stranger@example.com", password="Pass123!")
        courier_user = User.objects.create_user(email="courier@example.com", password="Pass123!")
        self.courier = Courier.objects.create(
            user=courier_user,
            full_name="Karim Courier",
            email=courier_user.email,
            phone="33600000000",
            address="Paris",
            experience="3 years",
            transport="scooter",
            motivation="Deliveries",
            status=Courier.Status.ACTIVE,
        )
        self.order = self._order(Order.Status.DELIVERED)
        self.client.force_authenticate(self.customer)

    def _order(self, status, client=None):
        return make_order(client or self.customer, self.courier, status)

    def _submit(self, order, rating=4, courier=None, **extra):
        payload = {"order_id": str(order.id), "courier_id": str((courier or self.courier).pk), "rating": rating}
        payload.update(extra)
        return self.client.post("/api/feedback/submit/", payload, format="json")

    def test_submit_feedback_updates_rating(self):
        response = self._submit(self.order, rating=4, comment="Fast and friendly")
        self.assertEqual(response.status_code, 201, response.data)
        feedback = Feedback.objects.get()
        self.assertEqual(feedback.comment, "Fast and friendly")
        self.courier.refresh_from_db()
        self.assertEqual(self.courier.rating_count, 1)
        self.assertAlmostEqual(self.courier.rating, 4.0)

    def test_rating_is_mean_of_all_feedback(self):
        self.assertEqual(self._submit(self.order, rating=5).status_code, 201)
        self.assertEqual(self._submit(self._order(Order.Status.DELIVERED), rating=5).status_code, 201)
        self.courier.refresh_from_db()
        self.assertAlmostEqual(self.courier.rating, 5.0)

        self.assertEqual(self._submit(self._order(Order.Status.DELIVERED), rating=1).status_code, 201)
        self.courier.refresh_from_db()
        self.assertAlmostEqual(self.courier.rating, 11 / 3)
        self.assertEqual(self.courier.rating_total, 11)
        self.assertEqual(self.courier.rating_count, 3)

    def test_duplicate_feedback_is_a_conflict(self):
        self.assertEqual(self._submit(self.order, rating=5).status_code, 201)
        response = self._submit(self.order, rating=1)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(Feedback.objects.count(), 1)
        self.courier.refresh_from_db()
        self.assertEqual(self.courier.rating_count, 1)
        self.assertAlmostEqual(self.courier.rating, 5.0)

    def test_cancelled_order_cannot_be_rated(self):
        response = self._submit(self._order(Order.Status.CANCELLED))
        self.assertEqual(response.status_code, 400)
        self.assertIn("order_id", response.data)
        self.assertFalse(Feedback.objects.exists())

    def test_pending_order_cannot_be_rated(self):
        response = self._submit(self._order(Order.Status.PENDING))
        self.assertEqual(response.status_code, 400)

    def test_only_order_client_can_rate(self):
        self.client.force_authenticate(self.stranger)
        response = self._submit(self.order)
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Feedback.objects.exists())

    def test_missing_order(self):
        response = self.client.post(
            "/api/feedback/submit/",
            {"order_id": "00000000-0000-0000-0000-000000000000", "courier_id": str(self.courier.pk), "rating": 3},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_missing_courier(self):
        response = self._submit(self.order, courier=self.stranger)
        self.assertEqual(response.status_code, 404)
        self.courier.refresh_from_db()
        self.assertEqual(self.courier.rating_count, 0)

    def test_rating_out_of_range(self):
        response = self._submit(self.order, rating=6)
        self.assertEqual(response.status_code, 400)
        self.assertIn("rating", response.data)

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self._submit(self.order)
        self.assertEqual(response.status_code, 401)


class ConcurrentRatingTests(TransactionTestCase):
    RATINGS = [5, 4, 3, 5, 2, 4, 1, 5]

    def setUp(self):
        self.customer = User.objects.create_user(email="client@example.com", password="Pass123!")
        courier_user = User.objects.create_user(email="courier@example.com", password="Pass123!")
        self.courier = Courier.objects.create(
            user=courier_user,
            full_name="Karim Courier",
            email=courier_user.email,
            phone="33600000000",
            address="Paris",
            experience="3 years",
            transport="scooter",
            motivation="Deliveries",
            status=Courier.Status.ACTIVE,
        )
        self.orders = [make_order(self.customer, self.courier, Order.Status.DELIVERED) for _ in self.RATINGS]

    def _submit(self, order, rating):
        try:
            for _ in range(50):
                try:
                    return FeedbackService.submit(self.customer, order.id, self.courier.pk, rating)
                except OperationalError:
                    # SQLite reports a locked table instead of waiting for the writer.
                    time.sleep(0.02)
            raise AssertionError("feedback submission kept failing on a locked database")
        finally:
            close_old_connections()

    def test_parallel_submissions_keep_every_rating(self):
        with ThreadPoolExecutor(max_workers=4) as executor:
            list(executor.map(self._submit, self.orders, self.RATINGS))

        courier = Courier.objects.get(pk=self.courier.pk)
        self.assertEqual(Feedback.objects.filter(courier=courier).count(), len(self.RATINGS))
        self.assertEqual(courier.rating_count, len(self.RATINGS))
        self.assertEqual(courier.rating_total, sum(self.RATINGS))
        self.assertAlmostEqual(courier.rating, sum(self.RATINGS) / len(self.RATINGS))
