import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from core.exceptions import ExternalServiceError
from .permissions import IsAdministrator
from .serializers import (
    ClientSerializer,
    EmailSerializer,
    GoogleSigninSerializer,
    PreferencesSerializer,
    SigninSerializer,
    SignupSerializer,
    UserSerializer,
)
from .services import (
    authenticate_with_google,
    authenticate_with_password,
    confirm_email,
    issue_tokens,
    notify_login,
    send_verification_email,
    store_push_token,
)

logger = logging.getLogger(__name__)
User = get_user_model()


class SignupView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Client account created user=%s", user.pk)
        email_sent = send_verification_email(user)
        return Response(
            {
                "message": "Account created. Check your inbox to verify your e-mail address.",
                "user_id": str(user.pk),
                "verification_email_sent": email_sent,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyEmailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, uidb64, token):
        if not confirm_email(uidb64, token):
            raise ValidationError({"detail": "Invalid or expired verification link."})
        return Response({"message": "E-mail verified"}, status=status.HTTP_200_OK)


class CheckEmailVerifiedView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        user = get_object_or_404(User, pk=uid)
        return Response({"email_verified": user.email_verified})


class SendVerificationEmailView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = User.objects.filter(email__iexact=serializer.validated_data["email"].strip()).first()
        if not user:
            raise NotFound("User not found")
        if user.email_verified:
            raise ValidationError({"email": "E-mail address is already verified."})
        if not send_verification_email(user):
            raise ExternalServiceError("Verification e-mail could not be sent.")
        return Response({"message": "Verification e-mail sent"}, status=status.HTTP_200_OK)


def _signin_response(user):
    return Response(
        {
            "message": "Signed in",
            "tokens": issue_tokens(user),
            "user": UserSerializer(user).data,
        },
        status=status.HTTP_200_OK,
    )


class SigninView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"

    def post(self, request):
        serializer = SigninSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = authenticate_with_password(data["email"].strip(), data["password"])
        store_push_token(user, data.get("push_token"))
        notify_login(user, User.Provider.PASSWORD)
        logger.info("User signed in user=%s", user.pk)
        return _signin_response(user)


class GoogleSigninView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"

    def post(self, request):
        serializer = GoogleSigninSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = authenticate_with_google(data["id_token"])
        store_push_token(user, data.get("push_token"))
        notify_login(user, User.Provider.GOOGLE)
        logger.info("User signed in with Google user=%s", user.pk)
        return _signin_response(user)


class MeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class PreferencesView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request):
        serializer = PreferencesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        for field, value in serializer.validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=list(serializer.validated_data) + ["updated_at"])
        return Response(
            {"message": "Preferences updated", "user": UserSerializer(user).data},
            status=status.HTTP_200_OK,
        )


class ClientListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    serializer_class = ClientSerializer

    def get_queryset(self):
        return User.objects.filter(role=User.Role.CLIENT).order_by("-created_at")
