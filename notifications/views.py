import logging

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.generics import ListAPIView
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdministrator
from .models import Notification
from .serializers import (
    AdminMessageSerializer,
    MarkReadSerializer,
    NotificationSerializer,
    PushTokenSerializer,
)
from .services import NotificationService

logger = logging.getLogger(__name__)
User = get_user_model()


class NotificationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class SendNotificationView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]

    def post(self, request):
        serializer = AdminMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = NotificationService.send(
            data["user_id"],
            data["title"],
            data["message"],
            Notification.Type.ADMIN_MESSAGE,
        )
        if not result.delivered:
            return Response({"detail": result.reason}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"message": "Notification sent", "id": str(result.notification.id)}, status=status.HTTP_200_OK)


class RegisterPushTokenView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = PushTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        claimed_user = serializer.validated_data.get("user_id")
        if claimed_user and claimed_user != request.user.pk:
            raise PermissionDenied("Cannot register a push token for another user.")

        token = serializer.validated_data.get("token")
        updated = User.objects.filter(pk=request.user.pk).update(push_token=token, updated_at=timezone.now())
        if not updated:
            raise NotFound("User not found")
        logger.info("Push token %s for user=%s", "registered" if token else "cleared", request.user.pk)
        return Response({"message": "Push token saved", "token": token}, status=status.HTTP_200_OK)


class NotificationListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = NotificationSerializer
    pagination_class = NotificationPagination

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user).order_by("-created_at")


class NotificationMarkReadView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = Notification.objects.filter(
            user=request.user,
            id__in=serializer.validated_data["notification_ids"],
        ).update(is_read=True, updated_at=timezone.now())
        return Response({"updated": updated}, status=status.HTTP_200_OK)
