from django.contrib.auth import get_user_model
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdministrator
from .models import SiteSettings
from .services import serialize_settings, update_settings

User = get_user_model()


def _admin_users():
    return [
        {"id": str(user.pk), "name": user.get_full_name(), "email": user.email}
        for user in User.objects.filter(role=User.Role.ADMIN).order_by("email")
    ]


class SiteSettingsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]

    def get(self, request):
        row = SiteSettings.load()
        if row is None:
            raise NotFound("Settings have not been configured yet")
        return Response({"data": serialize_settings(row), "admins": _admin_users()})

    def patch(self, request):
        payload = request.data if isinstance(request.data, dict) else {}
        row = update_settings(payload)
        return Response(
            {"message": "Settings saved", "data": serialize_settings(row)},
            status=status.HTTP_200_OK,
        )
