import logging

from django.db import IntegrityError, transaction
from rest_framework import permissions, status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdministrator
from core.exceptions import ConflictError
from .models import ContactMessage
from .serializers import ContactMessageSerializer, NewsletterSubscribeSerializer

logger = logging.getLogger(__name__)


class NewsletterSubscribeView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = NewsletterSubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                subscriber = serializer.save()
        except IntegrityError:
            raise ConflictError("This e-mail is already subscribed.")
        logger.info("Newsletter subscription id=%s", subscriber.id)
        return Response({"message": "Subscribed", "id": str(subscriber.id)}, status=status.HTTP_201_CREATED)


class ContactSubmitView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ContactMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        contact = serializer.save()
        logger.info("Contact message id=%s from user=%s", contact.id, contact.user_id)
        return Response({"message": "Message received", "id": str(contact.id)}, status=status.HTTP_201_CREATED)


class ContactMessageListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    serializer_class = ContactMessageSerializer
    queryset = ContactMessage.objects.all().order_by("-created_at")
