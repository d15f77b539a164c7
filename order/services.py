import logging
from functools import partial

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from courier.models import Courier
from courier.services import increment_delivery_count
from notifications.models import Notification
from notifications.services import NotificationService, NotificationTemplates, OutboundNotification

from .models import Order

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    def _resolve_courier(courier_id):
        courier = Courier.objects.select_for_update().filter(pk=courier_id).first()
        if not courier:
            raise ValidationError({"courier_id": "Courier not found."})
        if not courier.availability:
            raise ValidationError({"courier_id": "Courier is not available."})
        return courier

    @staticmethod
    def create_order(user, data):
        """
        data: validated OrderCreateSerializer output.

        The order insert and the courier's delivery counter move together in
        one transaction; notifications go out only once it has committed.
        """
        if data["client_id"] != user.pk:
            raise PermissionDenied("Orders can only be created for your own account.")

        pickup = data["pickup_location"]
        delivery = data["delivery_location"]

        with transaction.atomic():
            # The courier row stays locked until the counter update commits.
            courier = OrderService._resolve_courier(data["courier_id"])
            order = Order.objects.create(
                client=user,
                courier=courier,
                pickup_address=pickup["address"],
                pickup_lat=pickup["lat"],
                pickup_lng=pickup["lng"],
                delivery_address=delivery["address"],
                delivery_lat=delivery["lat"],
                delivery_lng=delivery["lng"],
                package_type=data["package_type"],
                weight=data["weight"],
                urgency=data["urgency"],
                scheduled_date=data["scheduled_date"],
                special_instructions=data.get("special_instructions", ""),
                insurance=data.get("insurance", False),
                amount=data["amount"],
                distance=data["distance"],
                estimated_time=data.get("estimated_time", ""),
                status=data.get("status", Order.Status.PENDING),
            )
            increment_delivery_count(courier.pk)
            transaction.on_commit(partial(notify_order_created, order))

        logger.info("Order %s created by client=%s for courier=%s", order.id, user.pk, courier.pk)
        return order

    @staticmethod
    def update_status(order_id, new_status):
        order = Order.objects.filter(pk=order_id).first()
        if not order:
            raise NotFound("Order not found")

        with transaction.atomic():
            order.status = new_status
            order.save(update_fields=["status", "updated_at"])
            transaction.on_commit(partial(notify_order_updated, order))

        logger.info("Order %s moved to %s", order.id, new_status)
        return order

    @staticmethod
    def delete_order(order_id):
        deleted, _ = Order.objects.filter(pk=order_id).delete()
        if not deleted:
            raise NotFound("Order not found")
        logger.info("Order %s deleted", order_id)


def notify_order_created(order):
    """Client, assigned courier and every admin; failures are logged, never raised."""
    try:
        messages = []
        title, message, payload = NotificationTemplates.order_created(order)
        messages.append(OutboundNotification(order.client_id, title, message, Notification.Type.ORDER, payload))
        if order.courier_id:
            title, message, payload = NotificationTemplates.order_assigned(order)
            messages.append(OutboundNotification(order.courier_id, title, message, Notification.Type.ORDER, payload))

        title, message, payload = NotificationTemplates.new_order(order)
        admin_messages = NotificationService.admin_messages(title, message, Notification.Type.NEW_ORDER, payload)
        if not admin_messages:
            logger.warning("Order %s: no administrators to notify", order.id)
        messages.extend(admin_messages)

        results = NotificationService.send_many(messages)
        for outbound, result in zip(messages, results):
            if not result.delivered:
                logger.warning(
                    "Order %s notification to user=%s not delivered: %s", order.id, outbound.user_id, result.reason
                )
    except Exception:
        logger.exception("Order %s: notification fan-out failed", order.id)


def notify_order_updated(order):
    try:
        title, message, payload = NotificationTemplates.order_updated(order)
        result = NotificationService.send(order.client_id, title, message, Notification.Type.ORDER_UPDATE, payload)
        if not result.delivered:
            logger.warning("Order %s status notification not delivered: %s", order.id, result.reason)
    except Exception:
        logger.exception("Order %s: status notification failed", order.id)
