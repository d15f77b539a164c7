from rest_framework import permissions

from .models import User


class IsAdministrator(permissions.BasePermission):
    """
    Authenticated caller whose *stored* role is ``admin``.

    The role is re-read from the database so that a demoted account loses
    access immediately, even while its bearer token is still valid.
    """

    message = "Administrator access required."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return User.objects.filter(pk=user.pk, role=User.Role.ADMIN, is_active=True).exists()
