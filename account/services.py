import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import update_last_login
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.utils import timezone
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import ExternalServiceError
from core.firebase import init_firebase
from notifications.models import Notification
from notifications.services import NotificationService, NotificationTemplates

logger = logging.getLogger(__name__)
User = get_user_model()


def verification_link(user):
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    return f"{settings.FRONTEND_URL.rstrip('/')}/verify-email/{uid}/{token}/"


def send_verification_email(user) -> bool:
    """Best effort; a mail failure is logged and reported as False."""
    try:
        send_mail(
            "Verify your e-mail address",
            f"Hello {user.first_name or user.email},\n\n"
            f"Please confirm your e-mail address by opening the link below:\n{verification_link(user)}\n",
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
        )
    except Exception:
        logger.exception("Verification e-mail to user=%s failed", user.pk)
        return False
    logger.info("Verification e-mail sent to user=%s", user.pk)
    return True


def user_from_uidb64(uidb64):
    try:
        pk = force_str(urlsafe_base64_decode(uidb64))
        return User.objects.filter(pk=pk).first()
    except (TypeError, ValueError, OverflowError, UnicodeDecodeError, DjangoValidationError):
        return None


def confirm_email(uidb64, token) -> bool:
    user = user_from_uidb64(uidb64)
    if user is None or not default_token_generator.check_token(user, token):
        return False
    if not user.email_verified:
        User.objects.filter(pk=user.pk).update(email_verified=True, updated_at=timezone.now())
        logger.info("E-mail verified for user=%s", user.pk)
    return True


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    update_last_login(None, user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


def store_push_token(user, token):
    if not token:
        return
    User.objects.filter(pk=user.pk).update(push_token=token, updated_at=timezone.now())
    user.push_token = token


def notify_login(user, provider=User.Provider.PASSWORD):
    try:
        title, message, payload = NotificationTemplates.login(provider)
        NotificationService.send(user.pk, title, message, Notification.Type.LOGIN, payload)
    except Exception:
        logger.exception("Login notification for user=%s failed", user.pk)


def authenticate_with_password(email, password):
    user = User.objects.filter(email__iexact=email).first()
    if user is None or not user.check_password(password):
        raise AuthenticationFailed("Invalid email or password.")
    if not user.is_active:
        raise PermissionDenied("This account has been disabled.")
    if not user.email_verified:
        raise PermissionDenied("Please verify your e-mail address before signing in.")
    return user


def verify_google_token(id_token) -> dict:
    if not init_firebase():
        raise ExternalServiceError("Google sign-in is not configured.")

    from firebase_admin import auth as firebase_auth

    try:
        return firebase_auth.verify_id_token(id_token)
    except Exception as exc:
        logger.warning("Google ID token rejected: %s", exc)
        raise AuthenticationFailed("Google token verification failed.") from exc


def authenticate_with_google(id_token):
    claims = verify_google_token(id_token)
    email = claims.get("email")
    if not email:
        raise AuthenticationFailed("Google account has no e-mail address.")

    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        name = claims.get("name", "")
        first_name, _, last_name = name.partition(" ")
        user = User.objects.create_user(
            email=email,
            first_name=first_name[:30],
            last_name=last_name[:30],
            display_name=name[:120],
            photo_url=claims.get("picture", ""),
            provider=User.Provider.GOOGLE,
            email_verified=True,
        )
        logger.info("Created user=%s from Google sign-in", user.pk)
    elif not user.is_active:
        raise PermissionDenied("This account has been disabled.")
    elif not user.email_verified:
        User.objects.filter(pk=user.pk).update(email_verified=True, updated_at=timezone.now())
        user.email_verified = True
    return user
