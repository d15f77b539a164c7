import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone
from django.utils.module_loading import import_string

from .models import Notification
from .push import PushResult

logger = logging.getLogger(__name__)
User = get_user_model()

USER_NOT_FOUND = "User not found"
NO_PUSH_TOKEN = "No push token registered"
TOKEN_RESET = "Invalid push token, reset"
NO_ADMINISTRATORS = "No administrators found"


@dataclass(frozen=True)
class OutboundNotification:
    user_id: Any
    title: str
    message: str
    notification_type: str = Notification.Type.GENERAL
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchResult:
    delivered: bool
    reason: str = ""
    notification: Optional[Notification] = None


@dataclass(frozen=True)
class BroadcastResult:
    success: bool
    notified: int = 0
    reason: str = ""


def get_push_provider():
    return import_string(settings.PUSH_PROVIDER)()


def _stringify(payload: Dict[str, Any]) -> Dict[str, str]:
    return {str(k): str(v) for k, v in payload.items()}


class NotificationService:
    """
    Push dispatcher. A Notification row is written only after the provider
    accepted the message, so the table is a log of delivered pushes.

    Database reads and writes happen on the calling thread; only the provider
    calls run on the worker pool.
    """

    @classmethod
    def send(
        cls,
        user_id,
        title: str,
        message: str,
        notification_type: str = Notification.Type.GENERAL,
        payload: Optional[Dict[str, Any]] = None,
    ) -> DispatchResult:
        outbound = OutboundNotification(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            payload=payload or {},
        )
        return cls.send_many([outbound])[0]

    @classmethod
    def send_many(cls, messages: Iterable[OutboundNotification]) -> List[DispatchResult]:
        messages = list(messages)
        results: List[Optional[DispatchResult]] = [None] * len(messages)

        pending = []
        for index, outbound in enumerate(messages):
            user = cls._load_user(outbound.user_id)
            if user is None:
                logger.info("Notification skipped, user=%s not found", outbound.user_id)
                results[index] = DispatchResult(False, USER_NOT_FOUND)
            elif not user.push_token:
                logger.info("Notification skipped, user=%s has no push token", user.pk)
                results[index] = DispatchResult(False, NO_PUSH_TOKEN)
            else:
                pending.append((index, outbound, user))

        if not pending:
            return results

        provider = get_push_provider()
        if len(pending) == 1:
            index, outbound, user = pending[0]
            results[index] = cls._record(user, outbound, cls._push(provider, user, outbound))
            return results

        workers = max(1, min(len(pending), settings.NOTIFICATION_FANOUT_WORKERS))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (index, outbound, user, executor.submit(cls._push, provider, user, outbound))
                for index, outbound, user in pending
            ]
            for index, outbound, user, future in futures:
                results[index] = cls._record(user, outbound, future.result())
        return results

    @classmethod
    def admin_messages(
        cls,
        title: str,
        message: str,
        notification_type: str = Notification.Type.GENERAL,
        payload: Optional[Dict[str, Any]] = None,
    ) -> List[OutboundNotification]:
        admin_ids = User.objects.filter(role=User.Role.ADMIN).values_list("id", flat=True)
        return [
            OutboundNotification(
                user_id=admin_id,
                title=title,
                message=message,
                notification_type=notification_type,
                payload=payload or {},
            )
            for admin_id in admin_ids
        ]

    @classmethod
    def broadcast_to_admins(
        cls,
        title: str,
        message: str,
        notification_type: str = Notification.Type.GENERAL,
        payload: Optional[Dict[str, Any]] = None,
    ) -> BroadcastResult:
        messages = cls.admin_messages(title, message, notification_type, payload)
        if not messages:
            logger.warning("Admin broadcast '%s' dropped: %s", title, NO_ADMINISTRATORS)
            return BroadcastResult(False, 0, NO_ADMINISTRATORS)

        results = cls.send_many(messages)
        notified = sum(1 for r in results if r.delivered)
        logger.info("Admin broadcast '%s' delivered to %s/%s admins", title, notified, len(messages))
        return BroadcastResult(True, notified)

    @staticmethod
    def _load_user(user_id):
        if user_id is None:
            return None
        try:
            return User.objects.filter(pk=user_id).only("id", "push_token").first()
        except (ValueError, DjangoValidationError):
            return None

    @staticmethod
    def _push(provider, user, outbound: OutboundNotification) -> PushResult:
        try:
            return provider.send(user.push_token, outbound.title, outbound.message, _stringify(outbound.payload))
        except Exception as exc:
            logger.exception("Push provider raised for user=%s", user.pk)
            return PushResult(PushResult.ERROR, str(exc))

    @staticmethod
    def _record(user, outbound: OutboundNotification, outcome: PushResult) -> DispatchResult:
        if outcome.ok:
            notification = Notification.objects.create(
                user_id=user.pk,
                type=outbound.notification_type or Notification.Type.GENERAL,
                title=outbound.title,
                message=outbound.message,
                payload=outbound.payload,
            )
            logger.info("Notification sent to user=%s type=%s", user.pk, notification.type)
            return DispatchResult(True, notification=notification)

        if outcome.status == PushResult.TOKEN_INVALID:
            User.objects.filter(pk=user.pk, push_token=user.push_token).update(
                push_token=None, updated_at=timezone.now()
            )
            logger.warning("Invalid push token cleared for user=%s token=%s", user.pk, user.push_token[:12])
            return DispatchResult(False, TOKEN_RESET)

        logger.warning("Push send failed for user=%s: %s", user.pk, outcome.message)
        return DispatchResult(False, outcome.message or "Push delivery failed")


class NotificationTemplates:
    @staticmethod
    def order_created(order):
        return (
            "Order created",
            f"Your order #{order.id} has been created successfully.",
            {"orderId": str(order.id)},
        )

    @staticmethod
    def order_assigned(order):
        return (
            "New order assigned",
            f"You have a new order #{order.id} to handle.",
            {"orderId": str(order.id)},
        )

    @staticmethod
    def new_order(order):
        return (
            "New order",
            f"A new order #{order.id} was created by {order.client_id}.",
            {"orderId": str(order.id)},
        )

    @staticmethod
    def order_updated(order):
        return (
            "Order update",
            f"Your order #{order.id} is now {order.status}.",
            {"orderId": str(order.id)},
        )

    @staticmethod
    def courier_application_received():
        return (
            "Courier application submitted",
            "Your courier application was received and is being processed.",
            {},
        )

    @staticmethod
    def new_courier_application(record):
        return (
            "New courier application",
            f"A new application from {record.full_name} was submitted.",
            {"courierId": str(record.pk)},
        )

    @staticmethod
    def login(provider="password"):
        if provider == "google":
            return ("Signed in with Google", "You are signed in to your account via Google.", {})
        return ("Signed in", "You are signed in to your Dynamism Express account.", {})
