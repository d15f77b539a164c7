import logging

from django.db import IntegrityError, transaction
from django.db.models import F, FloatField
from django.db.models.functions import Cast
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from core.exceptions import ConflictError
from courier.models import Courier
from order.models import Order

from .models import Feedback

logger = logging.getLogger(__name__)

DUPLICATE_FEEDBACK = "Feedback already submitted for this order."


class FeedbackService:

    @staticmethod
    def submit(user, order_id, courier_id, rating, comment=""):
        order = Order.objects.filter(pk=order_id).first()
        if not order:
            raise NotFound("Order not found")
        if order.status != Order.Status.DELIVERED:
            raise ValidationError({"order_id": "Order not delivered."})
        if order.client_id != user.pk:
            raise PermissionDenied("Only the order's client can rate this delivery.")
        if not Courier.objects.filter(pk=courier_id).exists():
            raise NotFound("Courier not found")
        if Feedback.objects.filter(order=order, client=user).exists():
            raise ConflictError(DUPLICATE_FEEDBACK)

        try:
            with transaction.atomic():
                feedback = Feedback.objects.create(
                    order=order,
                    courier_id=courier_id,
                    client=user,
                    rating=rating,
                    comment=comment,
                )
                FeedbackService._apply_rating(courier_id, rating)
        except IntegrityError:
            raise ConflictError(DUPLICATE_FEEDBACK)

        logger.info("Feedback %s recorded for courier=%s rating=%s", feedback.id, courier_id, rating)
        return feedback

    @staticmethod
    def _apply_rating(courier_id, rating):
        """
        Adds one rating to the courier's running total and count, then stores
        their quotient.
        """
        Courier.objects.filter(pk=courier_id).update(
            rating_total=F("rating_total") + rating,
            rating_count=F("rating_count") + 1,
            updated_at=timezone.now(),
        )
        Courier.objects.filter(pk=courier_id).update(
            rating=Cast("rating_total", FloatField()) / F("rating_count"),
        )
